from fastapi import APIRouter, HTTPException, status

from app.core.dependencies import StoreDependency
from app.core.responses import send_success
from app.db.schemas.record import PurgeResult, RecordUpsert, RevokeResult


router = APIRouter(prefix="/records", tags=["records"])


@router.post("/{name}/purge")
async def purge_expired(store: StoreDependency):
    deleted = await store.purge_expired()
    return send_success(
        message="Expired records purged.",
        data=PurgeResult(deleted=deleted).model_dump(),
    ).model_dump()


@router.get("/{name}")
async def list_records(store: StoreDependency):
    records = await store.get_all()
    return send_success(
        message=f"{len(records)} record(s) in '{store.name}'.",
        data=[r.model_dump(mode="json") for r in records],
    ).model_dump()


@router.get("/{name}/uid/{uid}")
async def find_by_uid(uid: str, store: StoreDependency):
    payload = await store.find_by_uid(uid)
    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No live record with uid '{uid}'",
        )
    return send_success(data=payload).model_dump()


@router.get("/{name}/user-code/{user_code}")
async def find_by_user_code(user_code: str, store: StoreDependency):
    payload = await store.find_by_user_code(user_code)
    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No live record with user code '{user_code}'",
        )
    return send_success(data=payload).model_dump()


@router.delete("/{name}/grants/{grant_id}")
async def revoke_grant(grant_id: str, store: StoreDependency):
    deleted = await store.revoke_by_grant_id(grant_id)
    return send_success(
        message="Grant revoked.",
        data=RevokeResult(grant_id=grant_id, deleted=deleted).model_dump(),
    ).model_dump()


@router.put("/{name}/{id}")
async def upsert_record(id: str, body: RecordUpsert, store: StoreDependency):
    await store.upsert(id, body.payload, body.expires_in)
    return send_success(message="Record stored.", data={"id": id}).model_dump()


@router.get("/{name}/{id}")
async def find_record(id: str, store: StoreDependency):
    payload = await store.find(id)
    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No live record with id '{id}'",
        )
    return send_success(data=payload).model_dump()


@router.post("/{name}/{id}/consume")
async def consume_record(id: str, store: StoreDependency):
    await store.consume(id)
    return send_success(message="Record consumed.", data={"id": id}).model_dump()


@router.delete("/{name}/{id}")
async def destroy_record(id: str, store: StoreDependency):
    await store.destroy(id)
    return send_success(message="Record destroyed.", data={"id": id}).model_dump()
