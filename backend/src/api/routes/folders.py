"""HTTP API routes for folders."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from ...models.folder import Folder, FolderCreate, FolderDeleteResult, FolderRename
from ...services.folder_service import FolderService, get_folder_service

router = APIRouter(prefix="/api/folders", tags=["folders"])


def _not_found(folder_id: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Folder {folder_id} not found",
    )


@router.get("", response_model=List[Folder])
async def list_folders(service: FolderService = Depends(get_folder_service)):
    return service.list_folders()


@router.post("", response_model=Folder, status_code=status.HTTP_201_CREATED)
async def create_folder(
    create: FolderCreate,
    service: FolderService = Depends(get_folder_service),
):
    try:
        return service.create_folder(create.name, parent_id=create.parent_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/{folder_id}", response_model=Folder)
async def get_folder(folder_id: str, service: FolderService = Depends(get_folder_service)):
    folder = service.get_folder(folder_id)
    if folder is None:
        raise _not_found(folder_id)
    return folder


@router.patch("/{folder_id}", response_model=Folder)
async def rename_folder(
    folder_id: str,
    rename: FolderRename,
    service: FolderService = Depends(get_folder_service),
):
    try:
        folder = service.rename_folder(folder_id, rename.name)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if folder is None:
        raise _not_found(folder_id)
    return folder


@router.delete("/{folder_id}", response_model=FolderDeleteResult)
async def delete_folder(folder_id: str, service: FolderService = Depends(get_folder_service)):
    """
    Delete a folder.

    Its notes become unfiled and its sub-folders move up one level.
    """
    result = service.delete_folder(folder_id)
    if result is None:
        raise _not_found(folder_id)
    return result
