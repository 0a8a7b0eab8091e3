"""HTTP routers for staybook."""
