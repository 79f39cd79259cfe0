# claimguard/claim_parser/local/tagging_model.py

"""
The opaque sequence-tagging model behind the local extraction path.

The decoder only ever sees two things about a model: its declared input
(shape and element type) and the tensor it returns. Any backend that can
provide those satisfies TaggingModel; the bundled one runs TorchScript.
"""
import io
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple

import numpy as np
import torch

from .tokenizer import to_input_tensor

# (filename, content) pairs as received from an upload
ModelFile = Tuple[str, bytes]


class ModelLoadError(RuntimeError):
    pass


@dataclass(frozen=True)
class InputSpec:
    name: Optional[str]
    shape: Tuple[Optional[int], ...]
    dtype: str = "int32"


class TaggingModel(Protocol):
    @property
    def input_spec(self) -> Optional[InputSpec]:
        ...

    def encode(self, token_ids: Sequence[int]) -> np.ndarray:
        ...

    def infer(self, inputs: np.ndarray) -> Any:
        ...


def _to_numpy(output: Any) -> Any:
    if isinstance(output, torch.Tensor):
        return output.detach().cpu().numpy()
    if isinstance(output, (list, tuple)):
        return [_to_numpy(item) for item in output]
    if isinstance(output, dict):
        return {key: _to_numpy(value) for key, value in output.items()}
    return output


def _parse_input_spec(description: Dict[str, Any]) -> Optional[InputSpec]:
    inputs = description.get("inputs") or []
    if not inputs:
        return None
    first = inputs[0]
    dtype = first.get("dtype") or "int32"
    try:
        np.dtype(dtype)
    except TypeError as e:
        raise ModelLoadError(f"Unsupported input dtype '{dtype}'.") from e
    shape = first.get("shape")
    return InputSpec(
        name=first.get("name"),
        shape=tuple(shape) if shape else (),
        dtype=dtype,
    )


class TorchScriptTaggingModel:
    """A scripted torch module plus the input declaration from its model.json."""

    def __init__(self, module: torch.jit.ScriptModule, input_spec: Optional[InputSpec]):
        self.module = module
        self.module.eval()
        self._input_spec = input_spec

    @property
    def input_spec(self) -> Optional[InputSpec]:
        return self._input_spec

    def encode(self, token_ids: Sequence[int]) -> np.ndarray:
        dtype = self._input_spec.dtype if self._input_spec else "int32"
        return to_input_tensor(list(token_ids), dtype)

    def infer(self, inputs: np.ndarray) -> Any:
        with torch.no_grad():
            output = self.module(torch.from_numpy(np.ascontiguousarray(inputs)))
        return _to_numpy(output)

    @classmethod
    def from_artifacts(cls, description: Dict[str, Any], shards: Dict[str, bytes]) -> "TorchScriptTaggingModel":
        """
        Reassembles the TorchScript archive from its weight shards.

        Shards are concatenated in weightsManifest order when the description
        lists them, otherwise in filename order.
        """
        model_format = description.get("format", "torchscript")
        if model_format != "torchscript":
            raise ModelLoadError(f"Unsupported model format '{model_format}'.")

        ordered_paths: List[str] = []
        for group in description.get("weightsManifest") or []:
            ordered_paths.extend(group.get("paths", []))
        if ordered_paths:
            missing = [path for path in ordered_paths if path not in shards]
            if missing:
                raise ModelLoadError(f"Missing weight shard(s): {', '.join(missing)}")
        else:
            ordered_paths = sorted(shards)

        archive = b"".join(shards[path] for path in ordered_paths)
        try:
            module = torch.jit.load(io.BytesIO(archive), map_location="cpu")
        except Exception as e:
            raise ModelLoadError(f"Model load failed: {e}") from e

        logging.info(f"Loaded TorchScript tagging model from {len(ordered_paths)} shard(s).")
        return cls(module, _parse_input_spec(description))


def split_model_files(
    files: Sequence[ModelFile],
    assets_file: Optional[ModelFile] = None,
) -> Tuple[ModelFile, Dict[str, bytes], Optional[ModelFile]]:
    """
    Sorts an upload into (model description, weight shards, assets file).

    The description is the first .json without 'assets' in its name; the
    assets file is the explicit one if given, else a .json named like assets.
    """
    json_files = [f for f in files if f[0].lower().endswith(".json")]
    bin_files = [f for f in files if f[0].lower().endswith(".bin")]

    description = next((f for f in json_files if "assets" not in f[0].lower()), None)
    if description is None and json_files:
        description = json_files[0]

    if assets_file is None:
        assets_file = next((f for f in json_files if "assets" in f[0].lower()), None)

    if description is None:
        raise ModelLoadError("Missing model topology file (model.json).")
    if not bin_files:
        raise ModelLoadError("Missing binary weights. Please include all .bin files.")

    return description, dict(bin_files), assets_file


def load_tagging_model(description_file: ModelFile, shards: Dict[str, bytes]) -> TorchScriptTaggingModel:
    name, content = description_file
    logging.info(f"Loading Model: {name}, Weights: {len(shards)} files")
    try:
        description = json.loads(content)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ModelLoadError(f"Model description '{name}' is not valid JSON: {e}") from e
    if not isinstance(description, dict):
        raise ModelLoadError(f"Model description '{name}' must be a JSON object.")
    return TorchScriptTaggingModel.from_artifacts(description, shards)
