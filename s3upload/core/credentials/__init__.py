"""Per-batch credentials and the providers that issue them."""
from .models import Credentials
from .providers import (
    CredentialsProvider,
    StaticCredentialsProvider,
    JsonFileCredentialsProvider,
    HttpCredentialsProvider,
    SigningCredentialsProvider,
)

__all__ = [
    'Credentials',
    'CredentialsProvider',
    'StaticCredentialsProvider',
    'JsonFileCredentialsProvider',
    'HttpCredentialsProvider',
    'SigningCredentialsProvider',
]
