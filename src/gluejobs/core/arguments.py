# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

import logging
from typing import Dict, Iterable, Mapping, Optional, Tuple

from .constants import RESERVED_ARGUMENTS
from .validation import check_no_reserved_arguments, check_string_map

logger = logging.getLogger(__name__)

# lowest to highest, later fragments win on key collisions
ARGUMENT_PRECEDENCE: Tuple[str, ...] = ("required", "continuous_logging", "metrics", "spark_ui", "caller")


def merge_arguments(
    required: Optional[Mapping[str, str]] = None,
    continuous_logging: Optional[Mapping[str, str]] = None,
    metrics: Optional[Mapping[str, str]] = None,
    spark_ui: Optional[Mapping[str, str]] = None,
    caller: Optional[Mapping[str, str]] = None,
    reserved: Iterable[str] = RESERVED_ARGUMENTS,
) -> Dict[str, str]:
    """Merge argument fragments into the final map passed to AWS Glue as 'DefaultArguments'.

    Only the caller supplied fragment is checked against the reserved keys, framework fragments are trusted.
    """
    caller = check_no_reserved_arguments(caller, reserved)
    check_string_map(caller)

    merged: Dict[str, str] = dict()
    for name, fragment in zip(ARGUMENT_PRECEDENCE, (required, continuous_logging, metrics, spark_ui, caller)):
        if not fragment:
            continue
        overridden = set(merged.keys()) & set(fragment.keys())
        if overridden:
            logger.debug("Arguments %s are overridden by the %s arguments", sorted(overridden), name)
        merged.update(fragment)
    return merged
