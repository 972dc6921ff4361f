"""Domain layer - contains protocols (interfaces) for data access and collaborators."""

from .repositories import (
    IApplicationUserRepository,
    ICategoryRepository,
    IDbInitializer,
    IEmailSender,
    IProductRepository,
    IRepository,
    IUnitOfWork,
)

__all__ = [
    "IApplicationUserRepository",
    "ICategoryRepository",
    "IDbInitializer",
    "IEmailSender",
    "IProductRepository",
    "IRepository",
    "IUnitOfWork",
]
