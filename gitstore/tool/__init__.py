"""Command line tool for inspecting and syncing a gitstore."""
