"""Credentials model for signed-POST uploads."""
from dataclasses import dataclass, asdict
from typing import Dict, Any


@dataclass(frozen=True)
class Credentials:
    """
    Short-lived credentials for one upload batch.

    Issued by a backend that holds the AWS secret; the client never sees
    the secret, only the signed policy.

    Attributes:
        bucket: Target bucket name
        unique_file_prefix: Prefix every key in the batch starts with
        access_key_id: AWS access key id the policy was signed with
        policy: Base64-encoded JSON POST policy
        signature: Signature of the policy
        content_type: Content type uploaded files are sent as
    """
    bucket: str
    unique_file_prefix: str
    access_key_id: str
    policy: str
    signature: str
    content_type: str

    # Backend JSON key -> attribute name
    _JSON_KEYS = {
        'bucket': 'bucket',
        'uniqueFilePrefix': 'unique_file_prefix',
        'AWSAccessKeyId': 'access_key_id',
        'policy': 'policy',
        'signature': 'signature',
        'contentType': 'content_type',
    }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Credentials':
        """
        Create from a backend response.

        Accepts the backend's camelCase keys or the attribute names.

        Raises:
            KeyError: If a required field is missing
        """
        values = {}
        for json_key, attr in cls._JSON_KEYS.items():
            if json_key in data:
                values[attr] = data[json_key]
            elif attr in data:
                values[attr] = data[attr]
            else:
                raise KeyError(json_key)
        return cls(**{k: str(v) for k, v in values.items()})

    def to_dict(self) -> Dict[str, str]:
        """Convert to the backend's JSON layout."""
        attrs = asdict(self)
        return {json_key: attrs[attr] for json_key, attr in self._JSON_KEYS.items()}
