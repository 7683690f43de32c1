# approvalflow/utils/id_generator.py
import uuid


def generate_id(prefix: str = "") -> str:
    """生成短唯一ID（用于未携带 id 的条件/条件组）"""
    return f"{prefix}{uuid.uuid4().hex[:12]}"
