"""
Command-line tools for the shared to-do list.

Tools:
    replay: rebuild the visible list from a JSON-lines command file
"""
