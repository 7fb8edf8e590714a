"""
Attention-enhanced CNN classifying 48x48 grayscale faces into expressions.

Module names (stage1, attention1, ..., classifier) are the state dict layout
of ``attention_cnn_best.pth`` checkpoints.
"""

import torch
import torch.nn as nn


class ChannelAttention(nn.Module):
    """Channel gate fed by average and max pooling through a shared MLP."""

    def __init__(self, channels: int, reduction: int = 16):
        super(ChannelAttention, self).__init__()
        hidden = max(1, channels // reduction)
        self.avg_pool = nn.AdaptiveAvgPool2d(1)
        self.max_pool = nn.AdaptiveMaxPool2d(1)
        self.fc = nn.Sequential(
            nn.Linear(channels, hidden, bias=False),
            nn.ReLU(inplace=True),
            nn.Linear(hidden, channels, bias=False),
            nn.Sigmoid()
        )

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        b, c, _, _ = x.size()
        gate = self.fc(self.avg_pool(x).view(b, c)) + self.fc(self.max_pool(x).view(b, c))
        return x * gate.view(b, c, 1, 1)


class SpatialAttention(nn.Module):
    """Per-pixel gate computed from channel-wise mean and max maps."""

    def __init__(self, kernel_size: int = 7):
        super(SpatialAttention, self).__init__()
        self.conv = nn.Conv2d(2, 1, kernel_size=kernel_size, padding=kernel_size // 2, bias=False)

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        pooled = torch.cat([
            torch.mean(x, dim=1, keepdim=True),
            torch.amax(x, dim=1, keepdim=True),
        ], dim=1)
        return x * torch.sigmoid(self.conv(pooled))


class AttentionBlock(nn.Module):
    """Channel attention followed by spatial attention."""

    def __init__(self, channels: int, reduction: int = 16):
        super(AttentionBlock, self).__init__()
        self.channel_attention = ChannelAttention(channels, reduction)
        self.spatial_attention = SpatialAttention()

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        return self.spatial_attention(self.channel_attention(x))


def conv_stage(in_channels: int, out_channels: int, pool: nn.Module) -> nn.Sequential:
    """Two 3x3 conv-BN-ReLU layers followed by ``pool``."""
    return nn.Sequential(
        nn.Conv2d(in_channels, out_channels, kernel_size=3, padding=1),
        nn.BatchNorm2d(out_channels),
        nn.ReLU(inplace=True),
        nn.Conv2d(out_channels, out_channels, kernel_size=3, padding=1),
        nn.BatchNorm2d(out_channels),
        nn.ReLU(inplace=True),
        pool,
    )


class AttentionCNN(nn.Module):
    """
    Three conv stages, each followed by an attention block.

    Input [B, 1, 48, 48], output logits [B, num_classes].
    """

    def __init__(self, num_classes: int = 7):
        super(AttentionCNN, self).__init__()

        self.stage1 = conv_stage(1, 64, nn.MaxPool2d(2, 2))  # 48 -> 24
        self.attention1 = AttentionBlock(64)
        self.stage2 = conv_stage(64, 128, nn.MaxPool2d(2, 2))  # 24 -> 12
        self.attention2 = AttentionBlock(128)
        self.stage3 = conv_stage(128, 256, nn.AdaptiveAvgPool2d(1))  # 12 -> 1
        self.attention3 = AttentionBlock(256)

        self.classifier = nn.Sequential(
            nn.Dropout(0.5),
            nn.Linear(256, 128),
            nn.ReLU(inplace=True),
            nn.Dropout(0.3),
            nn.Linear(128, num_classes)
        )

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        x = self.attention1(self.stage1(x))
        x = self.attention2(self.stage2(x))
        x = self.attention3(self.stage3(x))
        return self.classifier(torch.flatten(x, 1))
