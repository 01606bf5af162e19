from .artifact_repository import ArtifactRepository
from .manifest_repository import ManifestRepository

__all__ = [
    'ArtifactRepository',
    'ManifestRepository'
]
