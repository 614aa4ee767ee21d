"""
@PURPOSE: 数据处理模块, 负责字段规范化, 类目推断, 区域查表与选项打分
@OUTLINE:
  - clean_price, extract_zip, resolve_condition: 字段规范化
  - resolve_target_category, infer_category: 类目解析
  - resolve_subarea, resolve_neighborhood: 区域查表
  - pick_best_option, resolve_required_option: 选项匹配
@DEPENDENCIES:
  - 内部: .field_normalizer, .category_inference, .region_lookup, .option_matching
"""

from .field_normalizer import clean_price, extract_zip, resolve_condition
from .category_inference import infer_category, resolve_target_category
from .region_lookup import is_bypass_option, resolve_neighborhood, resolve_subarea
from .option_matching import (
    is_general_for_sale,
    pick_best_option,
    resolve_required_option,
    score_option,
    tokenize_label,
)

__all__ = [
    "clean_price",
    "extract_zip",
    "infer_category",
    "is_bypass_option",
    "is_general_for_sale",
    "pick_best_option",
    "resolve_condition",
    "resolve_neighborhood",
    "resolve_required_option",
    "resolve_subarea",
    "resolve_target_category",
    "score_option",
    "tokenize_label",
]
