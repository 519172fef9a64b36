"""XRayVision image classification boundary.

The portal ships no trained model. ``ImageClassifier`` is the seam a real
model plugs into; the two classifiers here are stand-ins that produce
plausible-looking results, either at random or from keywords in the
uploaded file name.
"""

import random
from dataclasses import dataclass
from typing import Protocol

from healthhub.core import config
from healthhub.core.errors import ValidationError

SCAN_BRAIN = 'brain'
SCAN_SKIN = 'skin'


@dataclass(frozen=True)
class ScanModel:
    name: str
    accuracy: float
    training_note: str
    positive_label: str
    negative_label: str
    positive_details: str
    negative_details: str
    positive_confidence: tuple[float, float]
    negative_confidence: tuple[float, float]


SCAN_MODELS = {
    SCAN_BRAIN: ScanModel(
        name='NeuroScan-ML23',
        accuracy=97.8,
        training_note='trained on 1.2M brain MRI scans',
        positive_label='possible tumor',
        negative_label='no tumor detected',
        positive_details=(
            'Potential anomaly detected in cerebral region with characteristics consistent with glioblastoma '
            'formation. Recommend immediate clinical consultation for further evaluation.'
        ),
        negative_details='No abnormal tissue patterns detected. Brain structures appear within normal parameters.',
        positive_confidence=(95.0, 99.0),
        negative_confidence=(97.0, 99.0),
    ),
    SCAN_SKIN: ScanModel(
        name='DermaScan-X4',
        accuracy=98.3,
        training_note='trained on 2.3M dermatological images',
        positive_label='possible melanocytic lesion',
        negative_label='no suspicious patterns',
        positive_details=(
            'Detected patterns consistent with possible melanocytic lesion. Cellular structure analysis suggests '
            'potential for melanoma. Recommend dermatological consultation for proper diagnosis.'
        ),
        negative_details=(
            'No suspicious patterns detected. Skin tissue appears within normal parameters with no signs of '
            'malignancy.'
        ),
        positive_confidence=(94.0, 99.0),
        negative_confidence=(96.0, 99.0),
    ),
}

POSITIVE_FILENAME_KEYWORDS = ('tumor', 'tumour', 'glioma', 'glioblastoma', 'melanoma', 'lesion', 'malignant', 'positive')
NEGATIVE_FILENAME_KEYWORDS = ('normal', 'healthy', 'benign', 'clear', 'negative')


@dataclass(frozen=True)
class ClassificationResult:
    scan_type: str
    label: str
    detected: bool
    confidence: float
    details: str
    model_name: str
    accuracy: float


class ImageClassifier(Protocol):
    def classify(self, image: bytes, filename: str, scan_type: str) -> ClassificationResult:
        ...


def get_scan_model(scan_type: str) -> ScanModel:
    model = SCAN_MODELS.get((scan_type or '').strip().lower())
    if model is None:
        raise ValidationError(f'Unsupported scan type: {scan_type}')
    return model


def build_result(scan_type: str, detected: bool, confidence: float) -> ClassificationResult:
    model = get_scan_model(scan_type)
    finding = model.positive_details if detected else model.negative_details
    return ClassificationResult(
        scan_type=scan_type,
        label=model.positive_label if detected else model.negative_label,
        detected=detected,
        confidence=round(confidence, 1),
        details=(
            f'Analysis complete using the {model.name} model {model.training_note}. {finding} '
            f'This model reports {model.accuracy}% diagnostic accuracy.'
        ),
        model_name=f'{model.name} ({model.accuracy}% accuracy)',
        accuracy=model.accuracy,
    )


class RandomScanClassifier:
    """Flips a coin per image. Seed the generator for repeatable output."""

    def __init__(self, rng: random.Random | None = None):
        self.rng = rng or random.Random()

    def classify(self, image: bytes, filename: str, scan_type: str) -> ClassificationResult:
        model = get_scan_model(scan_type)
        detected = self.rng.random() > 0.5
        low, high = model.positive_confidence if detected else model.negative_confidence
        return build_result(scan_type, detected, self.rng.uniform(low, high))


class FilenameScanClassifier:
    """Reads the verdict from keywords in the file name."""

    def __init__(self, fallback: ImageClassifier | None = None):
        self.fallback = fallback or RandomScanClassifier()

    def classify(self, image: bytes, filename: str, scan_type: str) -> ClassificationResult:
        model = get_scan_model(scan_type)
        name = (filename or '').lower()

        if any(keyword in name for keyword in POSITIVE_FILENAME_KEYWORDS):
            return build_result(scan_type, True, model.positive_confidence[1])
        if any(keyword in name for keyword in NEGATIVE_FILENAME_KEYWORDS):
            return build_result(scan_type, False, model.negative_confidence[1])

        return self.fallback.classify(image, filename, scan_type)


def default_classifier() -> ImageClassifier:
    if config.CLASSIFIER_MODE == 'filename':
        return FilenameScanClassifier()
    return RandomScanClassifier()
