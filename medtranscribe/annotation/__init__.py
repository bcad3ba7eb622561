from medtranscribe.annotation.annotator import MedicalAnnotator
from medtranscribe.annotation.base import BaseAnnotator
from medtranscribe.annotation.factory import AnnotatorFactory

__all__ = ["AnnotatorFactory", "BaseAnnotator", "MedicalAnnotator"]
