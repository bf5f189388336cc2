"""Signed-in user's favorites under /api/users/me/favorites."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from dependencies import get_access_claims, get_favorite_service
from schemas.dto.responses.car import CarResponse, FavoritesResponse
from schemas.models.token import AccessTokenClaims
from services.favorite_service import FavoriteService

router = APIRouter(prefix="/api/users/me/favorites", tags=["favorites"])


@router.get("", response_model=FavoritesResponse)
async def list_favorites(
    claims: AccessTokenClaims = Depends(get_access_claims),
    favorites: FavoriteService = Depends(get_favorite_service),
) -> FavoritesResponse:
    ids, cars = await favorites.list(claims.sub)
    return FavoritesResponse(
        favorites=[str(i) for i in ids],
        cars=[CarResponse.from_doc(car) for car in cars],
    )


@router.post("/{car_id}", response_model=FavoritesResponse)
async def add_favorite(
    car_id: str,
    claims: AccessTokenClaims = Depends(get_access_claims),
    favorites: FavoriteService = Depends(get_favorite_service),
) -> FavoritesResponse:
    ids = await favorites.add(claims.sub, car_id)
    return FavoritesResponse(favorites=[str(i) for i in ids])


@router.delete("/{car_id}", response_model=FavoritesResponse)
async def remove_favorite(
    car_id: str,
    claims: AccessTokenClaims = Depends(get_access_claims),
    favorites: FavoriteService = Depends(get_favorite_service),
) -> FavoritesResponse:
    ids = await favorites.remove(claims.sub, car_id)
    return FavoritesResponse(favorites=[str(i) for i in ids])
