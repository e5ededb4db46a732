"""
Communication interfaces

This module handles external communication including UDP publishing of
alerts and analysis results.
"""

from .udp_sender import ResultSender, integrated_message

__all__ = ['ResultSender', 'integrated_message']
