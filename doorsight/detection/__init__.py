"""Door and obstacle detection post-processing."""

from .types import Detection, DetectionKind
from .tensor_layout import TensorLayout, DOOR_LAYOUT, OBSTACLE_LAYOUT, COCO_CLASSES
from .preprocess import InputEncoding, NormalizedImage, normalize_image, decode_image_bytes
from .decoder import decode_tensor
from .nms import iou, non_max_suppression
from .inference import InferenceEngine, TFLiteEngine
from .visualization import draw_detections, draw_status, detection_summary

__all__ = [
    'Detection',
    'DetectionKind',
    'TensorLayout',
    'DOOR_LAYOUT',
    'OBSTACLE_LAYOUT',
    'COCO_CLASSES',
    'InputEncoding',
    'NormalizedImage',
    'normalize_image',
    'decode_image_bytes',
    'decode_tensor',
    'iou',
    'non_max_suppression',
    'InferenceEngine',
    'TFLiteEngine',
    'draw_detections',
    'draw_status',
    'detection_summary',
]
