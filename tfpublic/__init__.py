"""Publish annotated Terraform outputs as read-only data source interfaces."""

from .pipeline import PipelineResult, PublicInterfacePipeline, write_artifacts
from .scanner import AnnotationScanner

__all__ = ["AnnotationScanner", "PipelineResult", "PublicInterfacePipeline", "write_artifacts"]
__version__ = "0.1.0"
