"""cozydeploy CLI commands."""
