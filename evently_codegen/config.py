"""
Configuration for the resolver and the code synthesizer.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class ResolverConfig:
    """Configuration options for $ref resolution."""

    # Base URI (file path or URL) that relative references are resolved against
    base_uri: str = ""

    # Timeout in seconds for http(s) document loads
    http_timeout: float = 30.0

    @staticmethod
    def from_dict(d: dict) -> ResolverConfig:
        """Create a config from a dictionary."""
        config = ResolverConfig()
        for k, v in d.items():
            if hasattr(config, k):
                setattr(config, k, v)
        return config

    def to_dict(self) -> dict:
        """Convert config to a dictionary."""
        return {
            "base_uri": self.base_uri,
            "http_timeout": self.http_timeout,
        }


@dataclass
class CodeGeneratorConfig:
    """Configuration options for code generation."""

    # Root schemas to skip during batch generation
    ignore_classes: list[str] = field(default_factory=list)

    # Emit schema descriptions as docstrings and field comments
    include_comments: bool = True

    # Wrap optional scalar/object fields as "T | None"
    nullable_optionals: bool = True

    # Add generation comment at top of file
    add_generation_comment: bool = True

    # Use from __future__ import annotations
    use_future_annotations: bool = True

    # Embed the full source schema in the generated validation hooks.
    # When False, only field kind, required-ness and enum values survive.
    embed_full_schema: bool = True

    # Validation mode baked into the generated validate()/validate_json() hooks
    strict_validation: bool = False

    # Resolver settings used when root schemas contain $ref
    resolver: ResolverConfig = field(default_factory=ResolverConfig)

    @staticmethod
    def from_dict(d: dict) -> CodeGeneratorConfig:
        """Create a config from a dictionary."""
        config = CodeGeneratorConfig()
        for k, v in d.items():
            if k == "resolver" and isinstance(v, dict):
                config.resolver = ResolverConfig.from_dict(v)
            elif hasattr(config, k):
                setattr(config, k, v)
        return config

    def to_dict(self) -> dict:
        """Convert config to a dictionary."""
        return {
            "ignore_classes": self.ignore_classes,
            "include_comments": self.include_comments,
            "nullable_optionals": self.nullable_optionals,
            "add_generation_comment": self.add_generation_comment,
            "use_future_annotations": self.use_future_annotations,
            "embed_full_schema": self.embed_full_schema,
            "strict_validation": self.strict_validation,
            "resolver": self.resolver.to_dict(),
        }
