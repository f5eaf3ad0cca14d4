"""FastAPI reference backend for DJ Planner."""
