import asyncio
import logging
from decimal import Decimal

from exceptions.storage import CartPersistenceException
from models.cart import CartLineDTO
from models.product import ProductDTO
from repositories.cart_store import CartStoreRepository

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


class CartManager:
    """
    In-memory cart of one user, mirrored to the persisted cart store.

    The in-memory lines are the source of truth. Every mutation is applied
    in memory first and then written to the store; a failed write is logged
    and never undoes or blocks the mutation.

    Invariants:
    - at most one line per productId
    - every line has quantity >= 1
    """

    def __init__(self, owner_id: int, store: CartStoreRepository):
        self.owner_id = owner_id
        self._store = store
        self._lines: dict[int, CartLineDTO] = {}
        self._persist_lock = asyncio.Lock()

    async def hydrate(self):
        """Replace the in-memory cart with the last saved one."""
        lines = await self._store.load(self.owner_id)
        self._lines = {line.productId: line for line in lines}
        logger.debug(f"Cart of user {self.owner_id} hydrated with {len(self._lines)} line(s)")

    @property
    def lines(self) -> tuple[CartLineDTO, ...]:
        return tuple(self._lines.values())

    @property
    def is_empty(self) -> bool:
        return not self._lines

    def get_line(self, product_id: int) -> CartLineDTO | None:
        return self._lines.get(product_id)

    async def add_item(self, product: ProductDTO, quantity: int = 1):
        """
        Add a product to the cart, merging with an existing line.

        Name, price, image and stock are snapshotted from the product when
        the line is first created. No upper bound is enforced here; stock is
        advisory and only checked at checkout entry.

        Args:
            product: Catalog product to add
            quantity: Number of units to add (non-positive values are ignored)
        """
        if quantity < 1:
            logger.warning(f"Ignoring add of non-positive quantity {quantity} for product {product.productId}")
            return

        existing = self._lines.get(product.productId)
        if existing is not None:
            self._lines[product.productId] = existing.model_copy(
                update={"quantity": existing.quantity + quantity}
            )
        else:
            self._lines[product.productId] = CartLineDTO(
                productId=product.productId,
                productName=product.name,
                price=product.price,
                quantity=quantity,
                imageUrl=product.imageUrl,
                stock=product.stock
            )
        await self._persist()

    async def remove_item(self, product_id: int):
        """Remove a line; a missing line is not an error."""
        self._lines.pop(product_id, None)
        await self._persist()

    async def update_quantity(self, product_id: int, new_quantity: int):
        """
        Set the quantity of a line.

        A quantity of zero or below removes the line. Unknown products are
        ignored.
        """
        if new_quantity <= 0:
            await self.remove_item(product_id)
            return

        existing = self._lines.get(product_id)
        if existing is not None:
            self._lines[product_id] = existing.model_copy(update={"quantity": new_quantity})
        await self._persist()

    def get_total(self) -> Decimal:
        """Sum of unit price times quantity, exact to the cent."""
        total = sum((line.line_total for line in self._lines.values()), Decimal("0"))
        return total.quantize(CENT)

    def get_item_count(self) -> int:
        return sum(line.quantity for line in self._lines.values())

    def lines_exceeding_stock(self) -> list[CartLineDTO]:
        """Lines whose quantity is above the advisory stock seen at add time."""
        return [line for line in self._lines.values() if line.exceeds_stock()]

    async def clear_cart(self):
        """Empty the cart and remove the stored mirror entirely."""
        self._lines = {}
        async with self._persist_lock:
            try:
                await self._store.clear(self.owner_id)
            except CartPersistenceException as e:
                logger.error(f"Failed to remove stored cart of user {self.owner_id}: {e}")
        logger.info(f"Cart of user {self.owner_id} cleared")

    async def _persist(self):
        # snapshot inside the lock so the last writer always stores the newest state
        async with self._persist_lock:
            try:
                await self._store.save(self.owner_id, list(self._lines.values()))
            except CartPersistenceException as e:
                logger.error(f"Failed to persist cart of user {self.owner_id}: {e}")


class CartManagerRegistry:
    """
    One CartManager per user for the lifetime of the bot process.

    A manager is created and hydrated from the store the first time a user
    touches their cart, and reused afterwards. Managers are never evicted, so
    memory grows with the number of distinct users seen since startup (one
    small object per user). Restarting the process is safe because every cart
    is mirrored in Redis.
    """

    def __init__(self, store: CartStoreRepository):
        self._store = store
        self._managers: dict[int, CartManager] = {}
        self._hydrating: dict[int, asyncio.Task] = {}

    async def get(self, owner_id: int) -> CartManager:
        manager = self._managers.get(owner_id)
        if manager is not None:
            return manager

        # concurrent first accesses share a single hydration
        task = self._hydrating.get(owner_id)
        if task is None:
            task = asyncio.ensure_future(self._create(owner_id))
            self._hydrating[owner_id] = task
        try:
            return await asyncio.shield(task)
        finally:
            if task.done():
                self._hydrating.pop(owner_id, None)

    async def _create(self, owner_id: int) -> CartManager:
        manager = CartManager(owner_id, self._store)
        await manager.hydrate()
        self._managers[owner_id] = manager
        return manager
