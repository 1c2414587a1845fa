"""
Hourglass Resources - Pydantic models declaring Pulumi component resources.
"""

from .base import Resource
from .cluster import AksCluster
from .container_instances import TemporalContainerGroups
from .database import MySqlDatabase
from .kubernetes import TemporalClusterWorkloads
from .registry import ImageRegistry
from .temporal import CompositionStage, TemporalPlatform

__all__ = [
    "AksCluster",
    "CompositionStage",
    "ImageRegistry",
    "MySqlDatabase",
    "Resource",
    "TemporalClusterWorkloads",
    "TemporalContainerGroups",
    "TemporalPlatform",
]
