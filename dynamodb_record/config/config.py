import os
from typing import Any, Dict, Optional

from botocore.config import Config
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

# .env values never override variables already set in the process
load_dotenv()


def _env_flag(name: str) -> bool:
    return os.getenv(name, "false").strip().lower() in ("1", "true", "yes")


class DynamoDBConfig(BaseModel):
    """Settings for the DynamoDB client shared by records, transactions and migrations.

    Credentials left as None fall through to boto3's own credential chain.
    """

    model_config = ConfigDict(validate_assignment=True)

    aws_access_key_id: Optional[str] = Field(
        default_factory=lambda: os.getenv("AWS_ACCESS_KEY_ID"),
        description="Access key; None defers to the boto3 credential chain"
    )
    aws_secret_access_key: Optional[str] = Field(
        default_factory=lambda: os.getenv("AWS_SECRET_ACCESS_KEY"),
        description="Secret key; None defers to the boto3 credential chain"
    )
    region_name: str = Field(
        default_factory=lambda: os.getenv("AWS_REGION", "us-east-1"),
        description="Region of the tables"
    )
    endpoint_url: Optional[str] = Field(
        default_factory=lambda: os.getenv("DYNAMODB_ENDPOINT_URL"),
        description="Endpoint override for DynamoDB Local or LocalStack"
    )

    # Transport tuning, handed to botocore. The transaction coordinators never retry on their own.
    max_pool_connections: int = Field(default=50, description="HTTP connection pool size")
    retries: int = Field(default=3, description="botocore max_attempts")
    timeout_seconds: float = Field(default=30.0, description="Connect and read timeout")

    enable_debug_logging: bool = Field(
        default_factory=lambda: _env_flag("DYNAMODB_DEBUG_LOGGING"),
        description="Raise the dynamodb_record logger to DEBUG when a client is created"
    )

    @field_validator('region_name')
    @classmethod
    def validate_region(cls, v):
        if not v:
            raise ValueError("AWS region name is required")
        return v

    @field_validator('retries')
    @classmethod
    def validate_retries(cls, v):
        if v < 0:
            raise ValueError("retries must be zero or positive")
        return v

    @field_validator('timeout_seconds')
    @classmethod
    def validate_timeout(cls, v):
        if v <= 0:
            raise ValueError("timeout_seconds must be positive")
        return v

    def boto_config(self) -> Config:
        """botocore transport settings derived from this configuration."""
        return Config(
            retries={'max_attempts': self.retries},
            max_pool_connections=self.max_pool_connections,
            read_timeout=self.timeout_seconds,
            connect_timeout=self.timeout_seconds,
        )

    def resource_kwargs(self) -> Dict[str, Any]:
        """Keyword arguments for ``session.resource('dynamodb', ...)``."""
        kwargs = {'region_name': self.region_name, 'config': self.boto_config()}
        if self.endpoint_url:
            kwargs['endpoint_url'] = self.endpoint_url
        return kwargs

    @classmethod
    def from_env(cls) -> 'DynamoDBConfig':
        """Configuration read entirely from the environment (and .env)."""
        return cls()

    @classmethod
    def for_local_development(cls, endpoint_url: str = "http://localhost:8000") -> 'DynamoDBConfig':
        """Configuration for DynamoDB Local: dummy credentials and debug logging.

        Args:
            endpoint_url: Where DynamoDB Local listens
        """
        return cls(
            aws_access_key_id="local",
            aws_secret_access_key="local",
            region_name="us-east-1",
            endpoint_url=endpoint_url,
            enable_debug_logging=True
        )
