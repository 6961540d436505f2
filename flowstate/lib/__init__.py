"""Shared infrastructure for FlowState: logging, exceptions, notices."""
