"""Per-platform application entry points"""
