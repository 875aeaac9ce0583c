"""File storage for publication images."""

from komuness.storage.blob import BlobStorage
from komuness.storage.reconciler import UploadReconciler

__all__ = ["BlobStorage", "UploadReconciler"]
