"""List (and with --delete, remove) stored files no video row references.

Deletion keeps going when a file cannot be removed, so files can outlive their
rows. Run while no uploads are in flight: a staged, not yet committed upload
also looks orphaned.

Usage: python scripts/sweep_orphans.py [--delete]
"""
import asyncio
import sys
import os

# Add project root to sys.path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.db.session import async_session_maker
from app.services.cleanup_service import find_orphaned_files, rollback_staged
from app.services.storage_service import get_storage


async def sweep_orphans(delete: bool = False) -> None:
    storage = get_storage()
    async with async_session_maker() as db:
        orphans = await find_orphaned_files(db, storage)
    if not orphans:
        print(f"No orphaned files in {storage.base_dir}.")
        return
    print(f"Orphaned files in {storage.base_dir}:")
    for name in orphans:
        print(f"- {name}")
    if delete:
        rollback_staged(storage, *orphans)
        print(f"Removed {len(orphans)} file(s).")


if __name__ == "__main__":
    asyncio.run(sweep_orphans(delete="--delete" in sys.argv[1:]))
