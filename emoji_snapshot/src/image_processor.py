"""
Image decoding and preprocessing for expression scoring.
"""

import io
from typing import Callable, Tuple

import albumentations as A
import numpy as np
import torch
from albumentations.pytorch import ToTensorV2
from PIL import Image, UnidentifiedImageError

from .config import CLASSIFIER_INPUT_SIZE
from .errors import ImageDecodeError


def get_inference_transform() -> Callable:
    """
    Get the classifier input transform (no augmentation).

    Returns:
        Albumentations pipeline normalizing grayscale pixels to [-1, 1].
    """
    return A.Compose([
        A.Normalize(mean=[0.5], std=[0.5]),
        ToTensorV2()
    ])


def decode_image(data: bytes) -> np.ndarray:
    """
    Decode a still frame (JPEG/PNG bytes) to an RGB array.

    Args:
        data: Compressed image bytes

    Returns:
        RGB image as uint8 numpy array [H, W, 3]

    Raises:
        ImageDecodeError: if the data is empty or not a readable image
    """
    if not data:
        raise ImageDecodeError("Empty image data")

    try:
        with Image.open(io.BytesIO(data)) as pil_image:
            pil_image.load()
            rgb = pil_image.convert('RGB')
    except (UnidentifiedImageError, OSError, ValueError) as e:
        raise ImageDecodeError(f"Could not decode image: {e}") from e

    return np.array(rgb)


class ImageProcessor:
    """Face crop preprocessing for the expression classifier."""

    def __init__(self, target_size: Tuple[int, int] = CLASSIFIER_INPUT_SIZE):
        self.transform = get_inference_transform()
        self.target_size = target_size

    def preprocess(self, image: np.ndarray) -> torch.Tensor:
        """
        Preprocess a face crop for model input.

        Args:
            image: Face crop as numpy array (RGB, RGBA, or grayscale)

        Returns:
            Preprocessed tensor [1, 1, H, W]
        """
        if image.ndim == 3 and image.shape[2] == 1:
            image = image[:, :, 0]
        pil_image = Image.fromarray(image.astype(np.uint8)).convert('L')

        pil_image = pil_image.resize(self.target_size, Image.Resampling.LANCZOS)

        transformed = self.transform(image=np.array(pil_image))
        image_tensor = transformed['image']

        return image_tensor.reshape(1, 1, *image_tensor.shape[-2:])
