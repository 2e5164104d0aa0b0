from datetime import datetime
from typing import Any, Dict, List

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from easyprop.core.exceptions import NotFoundException
from easyprop.core.logging import get_logger
from easyprop.db.models import Favorite, Property

logger = get_logger(__name__)


class FavoriteService:
    def __init__(self, db: Session):
        self.db = db

    def _find(self, uid: str, property_id: str):
        return self.db.query(Favorite).filter(
            Favorite.user_id == uid,
            Favorite.property_id == property_id
        ).first()

    def add_to_favorites(self, uid: str, property_id: str) -> Dict[str, Any]:
        prop = self.db.get(Property, property_id)
        if not prop:
            raise NotFoundException("Property not found", details={"property_id": property_id})

        existing = self._find(uid, property_id)
        if existing:
            return {"already_favorite": True, "favorite": existing.to_dict()}

        favorite = Favorite(user_id=uid, property_id=property_id, created_at=datetime.utcnow())
        try:
            self.db.add(favorite)
            prop.favorites = (prop.favorites or 0) + 1
            self.db.commit()
            self.db.refresh(favorite)
        except IntegrityError:
            # concurrent insert of the same pair
            self.db.rollback()
            return {"already_favorite": True, "favorite": self._find(uid, property_id).to_dict()}
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Error adding to favorites", user_id=uid, property_id=property_id, error=str(e))
            raise

        logger.info("Property added to favorites", user_id=uid, property_id=property_id)
        return {"already_favorite": False, "favorite": favorite.to_dict()}

    def remove_from_favorites(self, uid: str, property_id: str) -> bool:
        favorite = self._find(uid, property_id)
        if not favorite:
            return False

        try:
            self.db.delete(favorite)
            prop = self.db.get(Property, property_id)
            if prop is not None:
                prop.favorites = max((prop.favorites or 0) - 1, 0)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Error removing from favorites", user_id=uid, property_id=property_id, error=str(e))
            raise

        logger.info("Property removed from favorites", user_id=uid, property_id=property_id)
        return True

    def get_user_favorites(self, uid: str) -> List[Dict[str, Any]]:
        favorites = self.db.query(Favorite).options(joinedload(Favorite.property)).filter(
            Favorite.user_id == uid
        ).order_by(Favorite.created_at.desc()).all()

        return [
            {**fav.to_dict(), "property": fav.property.summary() if fav.property else None}
            for fav in favorites
        ]

    def is_favorite(self, uid: str, property_id: str) -> bool:
        return self._find(uid, property_id) is not None
