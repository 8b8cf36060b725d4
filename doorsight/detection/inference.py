"""Inference engine interface and TFLite implementation."""

import os
import numpy as np
from pathlib import Path
from typing import Optional, Protocol

from doorsight.errors import InferenceError
from doorsight.utils.logger import get_logger

logger = get_logger(__name__)


class InferenceEngine(Protocol):
    """Runs one forward pass on a fixed-size input tensor."""

    def run(self, input_tensor: np.ndarray) -> np.ndarray:
        ...

    def close(self) -> None:
        ...


class TFLiteEngine:
    """
    TensorFlow Lite interpreter wrapper.

    Uses tflite_runtime when installed, otherwise tensorflow.lite.
    """

    def __init__(self, model_path: str, num_threads: Optional[int] = None):
        """
        Load a .tflite model.

        Args:
            model_path: Path to the .tflite file.
            num_threads: Interpreter threads. Defaults to cpu_count - 1.

        Raises:
            FileNotFoundError: If the model file does not exist.
            ImportError: If no TFLite interpreter is installed.
        """
        try:
            from tflite_runtime.interpreter import Interpreter
        except ImportError:
            try:
                from tensorflow.lite.python.interpreter import Interpreter
            except ImportError:
                raise ImportError(
                    "TFLite engine requires tflite-runtime or tensorflow. "
                    "Install with: pip install 'doorsight[tflite]'"
                )

        model_path = Path(model_path)
        if not model_path.exists():
            raise FileNotFoundError(f"TFLite model not found: {model_path}")

        threads = num_threads or max(1, (os.cpu_count() or 2) - 1)
        logger.info(f"Loading TFLite model: {model_path} ({threads} threads)")

        self.model_path = model_path
        self.interpreter = Interpreter(model_path=str(model_path), num_threads=threads)
        self.interpreter.allocate_tensors()

        self.input_details = self.interpreter.get_input_details()[0]
        self.output_details = self.interpreter.get_output_details()[0]
        logger.info(
            f"TFLite model ready (input={tuple(self.input_details['shape'])} "
            f"{np.dtype(self.input_details['dtype']).name}, "
            f"output={tuple(self.output_details['shape'])})"
        )

    def run(self, input_tensor: np.ndarray) -> np.ndarray:
        """
        Run inference.

        Args:
            input_tensor: (1, S, S, 3) tensor matching the model input.

        Returns:
            Raw output tensor.

        Raises:
            InferenceError: If the interpreter rejects the input or fails.
        """
        expected_dtype = self.input_details['dtype']
        if input_tensor.dtype != expected_dtype:
            raise InferenceError(
                f"{self.model_path.name} expects {np.dtype(expected_dtype).name} input, "
                f"got {input_tensor.dtype.name}"
            )

        try:
            self.interpreter.set_tensor(self.input_details['index'], input_tensor)
            self.interpreter.invoke()
            return np.array(self.interpreter.get_tensor(self.output_details['index']))
        except (RuntimeError, ValueError) as e:
            raise InferenceError(f"{self.model_path.name} inference failed: {e}") from e

    def close(self) -> None:
        """Release the interpreter."""
        self.interpreter = None
