"""
Harness Grader: Automated Programming Assignment Grading System

Injects a tester harness into each student's question folders, compiles and
runs it, parses the score it prints, and applies penalty models on top.
"""

__version__ = "0.1.0"
