"""HTTP routers mapping requests onto the account and document services."""
