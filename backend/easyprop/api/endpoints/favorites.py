from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from easyprop.auth.firebase import AuthenticatedUser, get_current_user
from easyprop.core.exceptions import NotFoundException
from easyprop.db.base import get_db
from easyprop.services.favorites import FavoriteService

router = APIRouter()


@router.get("")
async def list_favorites(
    user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    favorites = FavoriteService(db).get_user_favorites(user.uid)
    return {"favorites": favorites, "total": len(favorites)}


@router.get("/{property_id}")
async def check_favorite(
    property_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return {"property_id": property_id, "is_favorite": FavoriteService(db).is_favorite(user.uid, property_id)}


@router.post("/{property_id}", status_code=status.HTTP_201_CREATED)
async def add_favorite(
    property_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Add a listing to the caller's favorites. Adding twice is a no-op."""
    return FavoriteService(db).add_to_favorites(user.uid, property_id)


@router.delete("/{property_id}")
async def remove_favorite(
    property_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    if not FavoriteService(db).remove_from_favorites(user.uid, property_id):
        raise NotFoundException("Favorite not found", details={"property_id": property_id})
    return {"removed": True, "property_id": property_id}
