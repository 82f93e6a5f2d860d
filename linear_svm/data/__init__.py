"""Data package initialization."""

from .data_loader import DataLoader, TrainingData, number_of_classes, check_label_range

__all__ = ['DataLoader', 'TrainingData', 'number_of_classes', 'check_label_range']
