"""
Model persistence module for saving and loading trained linear SVMs.

A model is stored as a joblib package (the model object plus metadata) with
a JSON copy of the metadata next to it for human readability.
"""

import joblib
import json
import logging
from pathlib import Path
from datetime import datetime
from typing import Dict, Any, Optional, Union

from .linear_svm import LinearSVM
from ..utils.errors import DataLoadError

logger = logging.getLogger(__name__)

PACKAGE_TYPE = 'linear_svm'
PACKAGE_VERSION = 1


class ModelPersistence:
    """
    Handles saving and loading of trained models and their metadata.
    """

    def __init__(self, compress: int = 3):
        """
        Initialize model persistence handler.

        Args:
            compress: joblib compression level (0-9)
        """
        self.compress = compress

    @staticmethod
    def metadata_path(model_path: Union[str, Path]) -> Path:
        model_path = Path(model_path)
        return model_path.with_name(f"{model_path.stem}_metadata.json")

    def build_metadata(self, model: LinearSVM, extra: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Collect hyperparameters and training summary for a model."""
        metadata = {
            'model_type': PACKAGE_TYPE,
            'format_version': PACKAGE_VERSION,
            'timestamp': datetime.now().strftime('%Y%m%d_%H%M%S'),
            'num_classes': model.num_classes,
            'lambda': model.lambda_,
            'delta': model.delta,
            'fit_intercept': model.fit_intercept,
            'parameters_shape': list(model.parameters.shape),
            'feature_dimension': model.feature_dimensionality if model.is_trained else None,
            'training_info': model.training_info,
        }
        if extra:
            metadata.update(extra)
        return metadata

    def save_model(self,
                   model: LinearSVM,
                   model_path: Union[str, Path],
                   extra_metadata: Optional[Dict[str, Any]] = None) -> Path:
        """
        Save a model package to disk.

        Args:
            model: Model to save
            model_path: Destination file (conventionally ``.pkl`` or ``.joblib``)
            extra_metadata: Additional JSON-serializable metadata

        Returns:
            Path to saved model file
        """
        model_path = Path(model_path)
        model_path.parent.mkdir(parents=True, exist_ok=True)

        metadata = self.build_metadata(model, extra_metadata)
        model_package = {'model': model, **metadata}

        joblib.dump(model_package, model_path, compress=self.compress)

        with open(self.metadata_path(model_path), 'w') as f:
            json.dump(metadata, f, indent=2, default=str)

        logger.info(f"Model saved: {model_path}")
        return model_path

    def load_model(self, model_path: Union[str, Path]) -> LinearSVM:
        """
        Load a previously saved model.

        Args:
            model_path: Path to saved model file

        Returns:
            The stored LinearSVM
        """
        model_path = Path(model_path)

        if not model_path.exists():
            raise DataLoadError(f"Model file not found: {model_path}")

        try:
            model_package = joblib.load(model_path)
        except (EOFError, ValueError, KeyError, OSError) as e:
            raise DataLoadError(f"Could not read model file {model_path}: {e}") from e

        if not isinstance(model_package, dict) or model_package.get('model_type') != PACKAGE_TYPE:
            raise DataLoadError(f"{model_path} does not contain a linear SVM model")

        model = model_package['model']
        if not isinstance(model, LinearSVM):
            raise DataLoadError(f"{model_path} does not contain a linear SVM model")

        logger.info(f"Model loaded from {model_path.name}: {model!r}")
        return model
