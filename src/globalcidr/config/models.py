# src/globalcidr/config/models.py

from typing import Dict, Optional
from pydantic import BaseModel, Field, field_validator

from ..registry.features import FEATURES, get_feature


class FeatureConfig(BaseModel):
    enabled: bool = True
    cidr: Optional[str] = None              # pool range; feature default if unset
    allocation_size: Optional[int] = None   # addresses per cluster; feature default if unset


class GlobalCIDRConfig(BaseModel):
    namespace: str = "submariner-k8s-broker"   # broker namespace holding the registries
    context: Optional[str] = None              # Kubernetes context to use
    kubeconfig: Optional[str] = None
    retries: int = Field(default=5, ge=1)
    features: Dict[str, FeatureConfig] = Field(default_factory=dict)

    @field_validator("features")
    @classmethod
    def _known_features(cls, v: Dict[str, FeatureConfig]) -> Dict[str, FeatureConfig]:
        for name in v:
            if name not in FEATURES:
                raise ValueError(f"unknown feature '{name}', expected one of: {', '.join(sorted(FEATURES))}")
        return v

    def feature(self, name: str) -> FeatureConfig:
        """
        Effective settings for a feature, with the feature's built-in pool
        and size filling anything the file leaves unset.
        """
        feature = get_feature(name)
        fc = self.features.get(feature.name, FeatureConfig())
        return FeatureConfig(
            enabled=fc.enabled,
            cidr=fc.cidr or feature.default_cidr,
            allocation_size=fc.allocation_size or feature.default_allocation_size,
        )
