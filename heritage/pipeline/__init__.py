"""
Inscription pipeline: fallback chains and the two-run orchestrator.

Public API:
    - FallbackChain: Ordered provider attempts with optional offline generator
    - PipelineOrchestrator: extract_and_translate / synthesize_audio
    - PipelineError, Stage: Terminal failure reporting
    - build_chains: Chains computed once from configuration
"""

from heritage.pipeline.chain import AttemptResult, ChainOutcome, FallbackChain
from heritage.pipeline.factory import PipelineChains, build_chains
from heritage.pipeline.locales import voice_locale_for
from heritage.pipeline.orchestrator import PipelineError, PipelineOrchestrator, Stage

__all__ = [
    "AttemptResult",
    "ChainOutcome",
    "FallbackChain",
    "PipelineChains",
    "build_chains",
    "voice_locale_for",
    "PipelineError",
    "PipelineOrchestrator",
    "Stage",
]
