from form_mcp.analyzer import FormAnalyzer, ToolMetadata, humanize_name, sanitize_name
from form_mcp.config import EnhancerSettings, FormOverride, FormToolsConfig, resolve_config
from form_mcp.discovery import DiscoveryEngine
from form_mcp.enrichment import DescriptionEnricher
from form_mcp.exceptions import (
    EnrichmentError,
    ExecutionSuperseded,
    FormDetached,
    FormToolsError,
    ToolNotFound,
    ToolRegistrationError,
)
from form_mcp.execution import ExecuteBridge, ExecuteResult, serialize_form
from form_mcp.handle import FormToolsHandle, initialize
from form_mcp.hooks import (
    FormLifecycleEventData,
    HookEvent,
    HookRegistry,
    LifecycleSubscriber,
)
from form_mcp.model import DescriptionAdaptor
from form_mcp.page import MutationObserver, MutationRecord, Page, SubmitEvent
from form_mcp.registry import ToolRegistry
from form_mcp.schema import JsonSchema, JsonSchemaProperty, collect_radio_enum, map_control
from form_mcp.tools import FormTool, ToolHost

__all__ = [
    # Core
    "initialize",
    "FormToolsHandle",
    "Page",
    "MutationObserver",
    "MutationRecord",
    "SubmitEvent",
    "DiscoveryEngine",
    "FormAnalyzer",
    "ToolMetadata",
    "JsonSchema",
    "JsonSchemaProperty",
    "map_control",
    "collect_radio_enum",
    "sanitize_name",
    "humanize_name",
    "ToolRegistry",
    "FormTool",
    "ToolHost",
    "ExecuteBridge",
    "ExecuteResult",
    "serialize_form",
    # Enrichment
    "DescriptionAdaptor",
    "DescriptionEnricher",
    # Config
    "FormToolsConfig",
    "FormOverride",
    "EnhancerSettings",
    "resolve_config",
    # Hooks
    "HookRegistry",
    "HookEvent",
    "FormLifecycleEventData",
    "LifecycleSubscriber",
    # Exceptions
    "FormToolsError",
    "ToolRegistrationError",
    "ToolNotFound",
    "EnrichmentError",
    "ExecutionSuperseded",
    "FormDetached",
]
