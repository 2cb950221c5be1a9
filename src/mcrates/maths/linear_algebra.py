from mcrates.common.packages import *


def factor_reduction(correlation_matrix, num_factors):
    """
    Reduce a correlation matrix to its ``num_factors`` principal factors.

    The eigenvectors of the largest eigenvalues are scaled by the square root
    of their eigenvalue and each row is renormalized to unit length, such that
    the reduced correlation ``F @ F.T`` has a unit diagonal.

    Returns:
        torch.Tensor: Factor matrix of shape [n, num_factors].
    """
    n = correlation_matrix.shape[0]
    if not 1 <= num_factors <= n:
        raise ValueError(f"num_factors must be in [1, {n}], got {num_factors}.")

    eigenvalues, eigenvectors = torch.linalg.eigh(correlation_matrix)

    # eigh returns ascending eigenvalues
    order = torch.argsort(eigenvalues, descending=True)[:num_factors]
    eigenvalues = eigenvalues[order].clamp_min(0.0)
    eigenvectors = eigenvectors[:, order]

    factors = eigenvectors * torch.sqrt(eigenvalues).unsqueeze(0)

    norms = torch.linalg.norm(factors, dim=1, keepdim=True)
    return factors / norms.clamp_min(torch.finfo(factors.dtype).tiny)


def correlation_from_factors(factor_matrix):
    reduced = factor_matrix @ factor_matrix.T
    diagonal = torch.eye(reduced.shape[0], dtype=torch.bool, device=reduced.device)
    return torch.where(diagonal, torch.ones_like(reduced), reduced)
