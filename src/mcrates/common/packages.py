import torch

# Global simulation device and floating point type
device = torch.device("cuda" if torch.cuda.is_available() else "cpu")
FLOAT = torch.float64

__all__ = ["torch", "device", "FLOAT"]
