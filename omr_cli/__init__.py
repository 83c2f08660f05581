"""
omr-cli - 乐谱识别引擎的批处理/交互命令行入口

模块结构：
- config/     运行期配置与别名表
- models/     数据模型定义（参数快照/识别步骤/任务记录）
- pipeline/   任务构建、处理流水线、输出动作与任务调度
- engine/     识别引擎绑定（含演练引擎）
- cli         命令行解析
- log_context 按乐谱/页划分的日志上下文
- naming      乐谱radix推导
"""

__version__ = "0.1.0"
