"""Storage Layer: the in-memory TableStore and the steps that bind stores into chains."""
