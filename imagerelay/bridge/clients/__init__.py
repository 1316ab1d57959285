"""
Image generator clients
"""
from .base import BaseGenerator
from .imagen import ImagenPredictGenerator
from .relay import RelayClient

PROVIDERS = ("relay", "imagen", "direct")


def get_generator(provider: str = "relay") -> BaseGenerator:
    """
    Factory function to get the appropriate generator.

    Args:
        provider: 'relay' (via the imagerelay service), 'imagen' (REST predict,
            used by the relay itself) or 'direct' (google-genai SDK)

    Returns:
        BaseGenerator instance
    """
    provider = provider.lower()
    if provider == "relay":
        return RelayClient()
    elif provider == "imagen":
        return ImagenPredictGenerator()
    elif provider == "direct":
        from .direct import ImagenDirectGenerator
        return ImagenDirectGenerator()
    else:
        raise ValueError(f"Unknown provider: {provider}. Use one of: {', '.join(PROVIDERS)}.")


__all__ = ["get_generator", "BaseGenerator", "ImagenPredictGenerator", "RelayClient", "PROVIDERS"]
