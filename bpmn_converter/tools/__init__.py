"""
Command-line tools for the BPMN converter.
"""
