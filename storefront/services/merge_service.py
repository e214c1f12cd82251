"""
One-shot merge of anonymous cart/wishlist into the user's server state at login.

Rules:
- cart: quantities of the same product are summed
- wishlist: set union
- each local entry is deleted right after its server upsert commits, so a
  re-run never sees an entry that was already migrated; if the local delete
  fails the upsert is reverted and the cart merge stops
- entries that fail stay local for the next login; entries pointing to a
  missing/inactive product are dropped
- a per-session redis flag makes the merge run at most once per login
"""
from dataclasses import dataclass, field

from redis.exceptions import RedisError
from sqlalchemy.orm import Session

from storefront.domain.errors import NotFound
from storefront.domain.identity import Authenticated, Anonymous
from storefront.services.local_store import LocalStateStore
from storefront.services.lock_service import LockService
from storefront.services.server_store import ServerCartStore, ServerWishlistStore, require_user
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class MergeResult:
    already_merged: bool
    cart: dict[int, int] = field(default_factory=dict)
    wishlist: list[int] = field(default_factory=list)
    failed: list[int] = field(default_factory=list)
    skipped: list[int] = field(default_factory=list)


class MergeService:
    def __init__(self, db: Session, local_store: LocalStateStore | None, lock_service: LockService):
        self.cart = ServerCartStore(db)
        self.wishlist = ServerWishlistStore(db)
        self.local = local_store
        self.locks = lock_service

    def _result(self, user: Authenticated, already_merged: bool, failed=None, skipped=None) -> MergeResult:
        return MergeResult(
            already_merged=already_merged,
            cart={line.product_id: line.quantity for line in self.cart.lines(user)},
            wishlist=self.wishlist.product_ids(user),
            failed=sorted(set(failed or [])),
            skipped=sorted(set(skipped or [])),
        )

    def run_merge_once(self, identity, session_id: str) -> MergeResult:
        user = require_user(identity)

        try:
            acquired = self.locks.acquire_merge_guard(session_id)
        except RedisError as e:
            logger.warning(f"Merge for user {user.user_id} postponed, guard unavailable: {e}")
            return self._result(user, already_merged=False)

        if not acquired:
            logger.info(f"Merge for session {session_id} already done, skipping")
            return self._result(user, already_merged=True)

        if self.local is None:
            return self._result(user, already_merged=False)

        try:
            local_cart = self.local.cart()
            local_wishlist = self.local.wishlist()
        except Exception as e:
            #nothing was touched, let the next trigger of this session try again
            logger.warning(f"Merge for user {user.user_id}: local state unreadable: {e}")
            self.locks.release_merge_guard(session_id)
            return self._result(user, already_merged=False)

        logger.info(
            f"Merging local {self.local.token} into user {user.user_id}: "
            f"{len(local_cart)} cart lines, {len(local_wishlist)} wishlist items"
        )

        failed: list[int] = []
        skipped: list[int] = []
        merged: set[int] = set()

        for product_id, quantity in local_cart.items():
            try:
                before = self.cart.quantity(user, product_id)
                self.cart.add(user, product_id, quantity)
            except NotFound:
                logger.warning(f"Merge: product {product_id} unavailable, dropping from local cart")
                skipped.append(product_id)
                self.local.remove(product_id)
                continue
            except Exception as e:
                logger.warning(f"Merge: cart product {product_id} failed, kept locally: {e}")
                failed.append(product_id)
                continue
            if not self.local.remove(product_id):
                #the local copy would be merged again on the next login, undo the server side
                logger.warning(f"Merge: local cart {self.local.token} not writable, reverting product {product_id}")
                self.cart.set_quantity(user, product_id, before)
                failed.extend(pid for pid in local_cart if pid not in merged and pid not in skipped)
                break
            merged.add(product_id)

        for product_id in local_wishlist:
            try:
                self.wishlist.add(user, product_id)
            except NotFound:
                skipped.append(product_id)
                self.local.remove_from_wishlist(product_id)
                continue
            except Exception as e:
                logger.warning(f"Merge: wishlist product {product_id} failed, kept locally: {e}")
                failed.append(product_id)
                continue
            self.local.remove_from_wishlist(product_id)

        if not failed:
            self.local.clear()

        logger.info(f"Merge for user {user.user_id} done: failed={failed} skipped={skipped}")
        return self._result(user, already_merged=False, failed=failed, skipped=skipped)


def on_identity_transition(previous, current, session_id: str, merge_service: MergeService) -> MergeResult | None:
    """Runs the merge only on an Anonymous -> Authenticated change."""
    if isinstance(previous, Anonymous) and isinstance(current, Authenticated):
        return merge_service.run_merge_once(current, session_id)
    return None
