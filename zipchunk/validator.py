"""
Copyright 2025 DNAi inc.

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at

    http://www.apache.org/licenses/LICENSE-2.0

Unless required by applicable law or agreed to in writing, software
distributed under the License is distributed on an "AS IS" BASIS,
WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
See the License for the specific language governing permissions and
limitations under the License.
"""

"""
Precondition checks run before every compress and decompress call.
"""

import logging
import os

from .errors import InvalidArgumentError, IOFailureError, NotFoundError
from .options import IOOptions

logger = logging.getLogger(__name__)


def check_arguments(options: IOOptions) -> None:
    """Ensure the input and output directories are usable.

    Checks, in order:
    - Input path exists
    - Input path is a directory
    - Input directory is not empty
    - Output path is a directory if it exists

    The output directory, and any missing parents, are created when absent.

    Args:
        options: Options of the call about to run.

    Raises:
        NotFoundError: If the input does not exist or is empty.
        InvalidArgumentError: If the input or an existing output is not a directory.
        IOFailureError: If the filesystem cannot be inspected or the output
            directory cannot be created.
    """
    input_dir = options.input
    output_dir = options.output

    try:
        if not input_dir.exists():
            raise NotFoundError(f"Input '{input_dir}' does not exist")
        if not input_dir.is_dir():
            raise InvalidArgumentError(f"Input '{input_dir}' is not a directory")
        with os.scandir(input_dir) as children:
            if next(children, None) is None:
                raise NotFoundError(f"Input '{input_dir}' is empty")

        if output_dir.exists():
            if not output_dir.is_dir():
                raise InvalidArgumentError(f"Output '{output_dir}' is not a directory")
        else:
            logger.debug("Creating output directory %s", output_dir)
            output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise IOFailureError(f"Unable to check '{input_dir}' -> '{output_dir}': {e}") from e
