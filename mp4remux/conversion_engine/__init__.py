"""
Package for the core conversion workflow logic, independent of any front end.
"""
from .converter import Converter
from .naming import OutputNamer
from .orchestrator import BatchOrchestrator
from .scanner import collect_video_files
