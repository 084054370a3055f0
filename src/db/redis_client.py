from typing import Optional, Sequence
import redis

class RedisClient:
    def __init__(self, host: str, port: int, solution_ttl: int = 86400):
        self.redis = redis.Redis(host=host, port=port, decode_responses=True)
        self.solution_ttl = solution_ttl

    @staticmethod
    def _solution_key(tiles: Sequence[int], target: int) -> str:
        # Tile order is part of the key: it decides which answer wins ties
        return f"countdown:solution:{target}:{','.join(str(t) for t in tiles)}"

    def get_solution(self, tiles: Sequence[int], target: int) -> Optional[str]:
        """Get a cached solution as JSON, if this puzzle was solved before"""
        return self.redis.get(self._solution_key(tiles, target))

    def set_solution(self, tiles: Sequence[int], target: int, data: str):
        """Cache a solution's JSON for solution_ttl seconds"""
        key = self._solution_key(tiles, target)
        self.redis.set(key, data)
        self.redis.expire(key, self.solution_ttl)

    def clear_solutions(self) -> int:
        """Remove every cached solution, returns how many were removed"""
        keys = list(self.redis.scan_iter(match="countdown:solution:*"))
        if keys:
            self.redis.delete(*keys)
        return len(keys)
