from functools import wraps
from typing import Callable


def async_cached_expire(key_builder: Callable[..., str]):
    """
    Drop a cache key once the wrapped async write has succeeded.

    The instance must expose a ``cache`` attribute; key_builder receives the
    same args/kwargs as the method, ``self`` included.
    Example:
      @async_cached_expire(lambda self, task_id: f"tasks:{self.settings.team_name}")
      async def update_task(self, task_id): ...

    A failed write raises before the key is touched; a cache that is down
    only skips the delete.
    """

    def decorator(fn: Callable):
        @wraps(fn)
        async def wrapper(self, *args, **kwargs):
            result = await fn(self, *args, **kwargs)
            await self.cache.delete_quietly(key_builder(self, *args, **kwargs))
            return result

        return wrapper

    return decorator
