from app.marketplace.packages.service import PackageCatalog

__all__ = ["PackageCatalog"]
