from typing import Protocol
from .models import CreatePullRequest

class Formatter(Protocol):
    def format(self, message: CreatePullRequest) -> str:
        ...
