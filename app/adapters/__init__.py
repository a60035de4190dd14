"""Adapter layer package for external service and transport boundaries."""

from .analyzer_errors import (
	AnalyzerConnectionError,
	AnalyzerContractError,
	AnalyzerError,
	AnalyzerResponseError,
	AnalyzerTimeoutError,
	PushDeliveryError,
)
from .analyzer_http import HttpAnalyzerAdapter
from .interfaces import AnalyzerPort, PushChannelPort
from .push_channel import WebSocketPushChannel

__all__ = [
	"AnalyzerConnectionError",
	"AnalyzerContractError",
	"AnalyzerError",
	"AnalyzerPort",
	"AnalyzerResponseError",
	"AnalyzerTimeoutError",
	"HttpAnalyzerAdapter",
	"PushChannelPort",
	"PushDeliveryError",
	"WebSocketPushChannel",
]
