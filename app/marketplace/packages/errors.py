from app.marketplace.errors import NotFoundError


class PackageNotFoundError(NotFoundError):
    pass
