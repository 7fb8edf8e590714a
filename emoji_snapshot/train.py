"""
Train the expression classifier and write the checkpoint the app loads.

Expects FER2013-style folders::

    data/train/{angry,disgust,fear,happy,sad,surprise,neutral}/*.png
    data/val/...   (optional; train accuracy is used when missing)

Usage:
    python -m emoji_snapshot.train --data-dir data --epochs 30
"""

import argparse
import logging
from pathlib import Path
from typing import Callable, Optional, Tuple

import albumentations as A
import numpy as np
import torch
import torch.nn as nn
import torch.optim as optim
from albumentations.pytorch import ToTensorV2
from PIL import Image
from torch.utils.data import DataLoader, Dataset
from tqdm import tqdm

from .models import get_model
from .src.config import CLASSIFIER_ARCH, CLASSIFIER_FILE, PROJECT_ROOT, configure_logging
from .src.image_processor import get_inference_transform
from .src.model_loader import CLASSIFIER_LABELS

log = logging.getLogger(__name__)

# Folder names, in CLASSIFIER_LABELS order
CLASS_FOLDERS = ('angry', 'disgust', 'fear', 'happy', 'sad', 'surprise', 'neutral')
IMAGE_PATTERNS = ('*.png', '*.jpg', '*.jpeg')
GRAD_CLIP = 1.0


def get_train_transform() -> Callable:
    """Light augmentation: small geometric jitter, flips, lighting."""
    return A.Compose([
        A.Affine(
            translate_percent={'x': (-0.1, 0.1), 'y': (-0.1, 0.1)},
            scale=(0.85, 1.15),
            rotate=(-15, 15),
            p=0.7
        ),
        A.HorizontalFlip(p=0.5),
        A.RandomBrightnessContrast(brightness_limit=0.2, contrast_limit=0.2, p=0.5),
        A.Normalize(mean=[0.5], std=[0.5]),
        ToTensorV2()
    ])


class ExpressionFolderDataset(Dataset):
    """Grayscale face images stored one folder per expression."""

    def __init__(self, split_dir: Path, transform: Optional[Callable] = None, size: Tuple[int, int] = (48, 48)):
        self.transform = transform or get_inference_transform()
        self.size = size
        self.samples = []

        for class_idx, folder in enumerate(CLASS_FOLDERS):
            class_dir = Path(split_dir) / folder
            if not class_dir.exists():
                log.warning("%s does not exist, skipping", class_dir)
                continue
            for pattern in IMAGE_PATTERNS:
                self.samples.extend((str(p), class_idx) for p in sorted(class_dir.glob(pattern)))

        if not self.samples:
            raise ValueError(f"No images found under {split_dir}")
        log.info("Loaded %d images from %s", len(self.samples), split_dir)

    def __len__(self) -> int:
        return len(self.samples)

    def __getitem__(self, idx: int):
        path, label = self.samples[idx]
        with Image.open(path) as image:
            gray = np.array(image.convert('L').resize(self.size))
        tensor = self.transform(image=gray)['image']
        return tensor.reshape(1, *tensor.shape[-2:]), label


def run_epoch(model, loader, criterion, device, optimizer=None) -> Tuple[float, float]:
    """One pass over ``loader``; trains when an optimizer is given. Returns (loss, acc%)."""
    training = optimizer is not None
    model.train(training)
    running_loss, correct, total = 0.0, 0, 0

    with torch.set_grad_enabled(training):
        for images, labels in tqdm(loader, desc='Training' if training else 'Validation', leave=False):
            images, labels = images.to(device), labels.to(device)
            outputs = model(images)
            loss = criterion(outputs, labels)

            if training:
                optimizer.zero_grad()
                loss.backward()
                torch.nn.utils.clip_grad_norm_(model.parameters(), GRAD_CLIP)
                optimizer.step()

            running_loss += loss.item()
            total += labels.size(0)
            correct += outputs.argmax(1).eq(labels).sum().item()

    return running_loss / max(1, len(loader)), 100.0 * correct / max(1, total)


def train_model(
    data_dir: Path,
    checkpoint_dir: Path,
    epochs: int = 30,
    batch_size: int = 64,
    lr: float = 1e-3,
    device: Optional[torch.device] = None
) -> Path:
    """
    Train and keep the best epoch.

    Returns:
        Path of the written checkpoint
    """
    device = device or torch.device('cuda' if torch.cuda.is_available() else 'cpu')
    data_dir = Path(data_dir)
    checkpoint_dir = Path(checkpoint_dir)
    checkpoint_dir.mkdir(parents=True, exist_ok=True)
    checkpoint_path = checkpoint_dir / CLASSIFIER_FILE

    train_loader = DataLoader(
        ExpressionFolderDataset(data_dir / 'train', get_train_transform()),
        batch_size=batch_size,
        shuffle=True
    )
    val_loader = None
    if (data_dir / 'val').exists():
        val_loader = DataLoader(ExpressionFolderDataset(data_dir / 'val'), batch_size=batch_size)

    model = get_model(CLASSIFIER_ARCH, num_classes=len(CLASSIFIER_LABELS)).to(device)
    criterion = nn.CrossEntropyLoss()
    optimizer = optim.Adam(model.parameters(), lr=lr)

    best_acc = -1.0
    for epoch in range(1, epochs + 1):
        train_loss, train_acc = run_epoch(model, train_loader, criterion, device, optimizer)
        val_acc = run_epoch(model, val_loader, criterion, device)[1] if val_loader else train_acc
        log.info("Epoch %d/%d loss %.4f train %.2f%% val %.2f%%", epoch, epochs, train_loss, train_acc, val_acc)

        if val_acc > best_acc:
            best_acc = val_acc
            torch.save({
                'epoch': epoch,
                'model_state_dict': model.state_dict(),
                'val_acc': val_acc,
            }, checkpoint_path)
            log.info("New best model saved (val acc %.2f%%)", val_acc)

    return checkpoint_path


def main():
    parser = argparse.ArgumentParser(description='Train the expression classifier')
    parser.add_argument('--data-dir', type=Path, default=Path('data'), help='FER2013-style dataset root')
    parser.add_argument('--checkpoint-dir', type=Path, default=PROJECT_ROOT / 'checkpoints', help='Where to write the checkpoint')
    parser.add_argument('--epochs', type=int, default=30)
    parser.add_argument('--batch-size', type=int, default=64)
    parser.add_argument('--lr', type=float, default=1e-3)
    args = parser.parse_args()

    configure_logging()
    path = train_model(args.data_dir, args.checkpoint_dir, args.epochs, args.batch_size, args.lr)
    print(f"✅ Checkpoint saved: {path}")


if __name__ == '__main__':
    main()
