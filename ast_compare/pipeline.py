"""
pipeline.py - Batch comparison of an original and a modified source tree.

Flow per file pair:

    Discovered → Paired → Parsed (both sides) → Compared → Reported [+ Persisted]

Pairs are independent.  With ``jobs > 1`` parsing and comparison run on a
thread pool, but outcomes are consumed in discovery order and reporting
(including persistence) stays on the calling thread, so console output and
artifact writes never interleave between pairs.

Errors raised for a pair (ParseError, PersistError) go through a
FailureHandler: the default fail-fast policy re-raises immediately and
cancels outstanding work; the collect policy records the error and moves
on.  Discovery errors are always fatal.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

from ast_compare.ast_parser import JavaScriptParser
from ast_compare.differ import compare_trees
from ast_compare.errors import AstCompareError
from ast_compare.models import CompareConfig, FailurePolicy, FilePair, PairOutcome, RunSummary
from ast_compare.pairing import iter_file_pairs
from ast_compare.reporter import Reporter

logger = logging.getLogger(__name__)


class FailureHandler:
    """Decides whether a per-pair error aborts the run or is collected."""

    def __init__(self, policy: FailurePolicy = FailurePolicy.FAIL_FAST) -> None:
        self.policy = policy
        self.errors: list[AstCompareError] = []

    def handle(self, exc: AstCompareError) -> None:
        if self.policy is FailurePolicy.FAIL_FAST:
            raise exc
        logger.error("%s", exc)
        self.errors.append(exc)


def compare_pair(pair: FilePair, parser: JavaScriptParser) -> PairOutcome:
    """Parse both sides of *pair* and compare them.

    Errors are captured on the outcome rather than raised, so worker
    threads hand them back to the caller in order.  Both trees leave the
    parse cache once the pair is compared; the outcome keeps its own
    references for reporting.
    """
    logger.debug("Comparing %s with %s", pair.original, pair.modified)
    original_tree = modified_tree = None
    try:
        original_tree = parser.parse_file(pair.original)
        modified_tree = parser.parse_file(pair.modified)
        result = compare_trees(original_tree, modified_tree)
    except AstCompareError as exc:
        return PairOutcome(pair=pair, error=exc)
    finally:
        parser.release(original_tree, modified_tree)
    return PairOutcome(
        pair=pair,
        original_tree=original_tree,
        modified_tree=modified_tree,
        result=result,
    )


def _consume(
    outcomes: Iterator[PairOutcome],
    reporter: Reporter,
    handler: FailureHandler,
    summary: RunSummary,
) -> None:
    for outcome in outcomes:
        if outcome.error is not None:
            handler.handle(outcome.error)
            continue
        summary.files_compared += 1
        if outcome.result.has_differences:
            summary.divergent.append(outcome.pair.original)
        try:
            reporter.report(
                outcome.pair, outcome.original_tree, outcome.modified_tree, outcome.result
            )
        except AstCompareError as exc:
            handler.handle(exc)


def run_pairs(
    pairs: Iterable[FilePair],
    parser: JavaScriptParser,
    reporter: Reporter,
    policy: FailurePolicy = FailurePolicy.FAIL_FAST,
    jobs: int = 1,
) -> RunSummary:
    """Compare and report every pair, honouring *policy*."""
    handler = FailureHandler(policy)
    summary = RunSummary()

    if jobs > 1:
        executor = ThreadPoolExecutor(max_workers=jobs, thread_name_prefix="ast-compare")
        try:
            futures = [executor.submit(compare_pair, pair, parser) for pair in pairs]
            _consume((f.result() for f in futures), reporter, handler, summary)
        finally:
            executor.shutdown(wait=True, cancel_futures=True)
    else:
        _consume((compare_pair(pair, parser) for pair in pairs), reporter, handler, summary)

    summary.errors = [str(exc) for exc in handler.errors]
    return summary


def run_comparison(
    config: CompareConfig,
    parser: Optional[JavaScriptParser] = None,
    reporter: Optional[Reporter] = None,
) -> RunSummary:
    """Run a full comparison described by *config*.

    Raises:
        DiscoveryError: a scanned directory could not be listed.
        ParseError / PersistError: under the fail-fast policy.
    """
    if parser is None:
        parser = JavaScriptParser(
            ecma_version=config.ecma_version, source_type=config.source_type
        )
    if reporter is None:
        reporter = Reporter(persist=config.debug)

    pairs = list(iter_file_pairs(config))
    logger.debug("Beginning AST parse process for %d file pair(s)", len(pairs))

    summary = run_pairs(pairs, parser, reporter, config.failure_policy, config.jobs)
    summary.fail_on_divergence = config.fail_on_divergence
    logger.debug(
        "Compared %d file(s), %d divergent, %d error(s); parse cache %s",
        summary.files_compared, len(summary.divergent), len(summary.errors),
        parser.cache_stats(),
    )
    return summary
