"""Subscription package endpoints."""

from fastapi import APIRouter

from serenity.api.deps import Container
from serenity.models.requests import PackageUpdate

router = APIRouter(prefix="/subscriptions/packages", tags=["Subscriptions"])


@router.get("")
async def list_packages(container: Container):
    return await container.packages.list_active()


@router.put("/{package_id}")
async def update_package(package_id: str, payload: PackageUpdate, container: Container):
    return await container.packages.update_package(package_id, payload)
