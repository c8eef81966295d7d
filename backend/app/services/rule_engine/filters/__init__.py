"""Secondary checks applied to matched programs."""

from .asset_limit import AssetLimitFilter

__all__ = ["AssetLimitFilter"]
