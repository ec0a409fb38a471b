"""
Binding models — the service-broker credentials bundle.

A binding is the JSON document the broker hands out for a provisioned
instance. Only two credential fields matter here:

    {
        "credentials": {
            "kubeconfig": "<raw kubeconfig YAML>",
            "domain_name": "example.com"
        }
    }

Everything else the broker includes is ignored.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class BindingCredentials(BaseModel):
    """The ``credentials`` block of a binding."""

    model_config = ConfigDict(extra="ignore")

    kubeconfig: str = Field(description="Raw kubeconfig content")
    domain_name: str = Field(description="Zone the cluster publishes ingresses under")

    @field_validator("kubeconfig")
    @classmethod
    def _kubeconfig_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("kubeconfig is empty")
        return v

    @field_validator("domain_name")
    @classmethod
    def _domain_clean(cls, v: str) -> str:
        v = v.strip().rstrip(".")
        if not v:
            raise ValueError("domain_name is empty")
        return v


class Binding(BaseModel):
    """A validated binding document."""

    model_config = ConfigDict(extra="ignore")

    credentials: BindingCredentials

    @property
    def kubeconfig(self) -> str:
        return self.credentials.kubeconfig

    @property
    def domain_name(self) -> str:
        return self.credentials.domain_name

    def test_host(self, subdomain: str) -> str:
        """Fully-qualified host the app fixture is published under."""
        return f"{subdomain}.{self.domain_name}"
