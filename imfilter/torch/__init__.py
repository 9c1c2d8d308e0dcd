"""
GPU-accelerated bilateral filtering backed by PyTorch.
"""

from imfilter.torch.bilateral import TorchBilateralFilter

__all__ = ["TorchBilateralFilter"]
