from fastapi import APIRouter, Depends, File, Form, UploadFile
from pydantic import BaseModel

from healthhub.auth.dependencies import require_patient
from healthhub.core.errors import ValidationError
from healthhub.models.account import Account
from healthhub.services.classifier import ImageClassifier, default_classifier

router = APIRouter(tags=['xray'])

MAX_IMAGE_BYTES = 10 * 1024 * 1024


class ClassificationResponse(BaseModel):
    scan_type: str
    label: str
    detected: bool
    confidence: float
    details: str
    model_name: str
    accuracy: float

    class Config:
        from_attributes = True


def get_classifier() -> ImageClassifier:
    return default_classifier()


@router.post('/analyze', response_model=ClassificationResponse)
async def analyze_image(
    scan_type: str = Form(...),
    file: UploadFile = File(...),
    patient: Account = Depends(require_patient),
    classifier: ImageClassifier = Depends(get_classifier),
):
    if not (file.content_type or '').startswith('image/'):
        raise ValidationError('Please upload an image file')

    image = await file.read()
    if not image:
        raise ValidationError('The uploaded image is empty.')
    if len(image) > MAX_IMAGE_BYTES:
        raise ValidationError('Images must be 10 MB or smaller.')

    result = classifier.classify(image, file.filename or '', scan_type.strip().lower())
    return ClassificationResponse.model_validate(result)
