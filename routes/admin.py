from fastapi import APIRouter, Depends, HTTPException

from database import get_db
from store import Store
from utils.route_helpers import get_current_user_id
from policies import is_admin
from voting import reconcile_counters

router = APIRouter(prefix="/admin", tags=["admin"])


def require_admin(current_user_id: str = Depends(get_current_user_id)):
    with get_db() as conn:
        if not is_admin(Store(conn, current_user_id).ctx, {}):
            raise HTTPException(status_code=403, detail="Admin access required")
        return current_user_id


@router.post("/reconcile-counters")
def reconcile(current_user_id: str = Depends(require_admin)):
    """Recompute vote/reaction counters and scores from the stored rows"""
    with get_db(immediate=True) as conn:
        corrected = reconcile_counters(conn)
        conn.commit()
    return {"corrected": corrected}
