"""
Prometheus alert check: fetch active alerts, filter them and report a verdict.
"""

__version__ = '1.0.0'
