"""Tool integrations available to swarm agents."""
