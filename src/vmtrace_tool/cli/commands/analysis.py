"""
分析命令模块
"""

import time
from pathlib import Path

from ..validators import validate_aggregation_fields, validate_clock, parse_output_formats
from ..file_utils import parse_file_paths
from ...analyzer import analyze_files


class AnalysisCommand:
    """分析命令处理器"""

    def run(self, args) -> int:
        """运行单个或多个文件分析"""
        print(f"=== 调用耗时分析 ===")
        print(f"文件模式: {args.file}")
        print(f"标签: {args.label}")
        print(f"聚合字段: {args.aggregation}")
        print(f"排序时间域: {args.clock}")
        print(f"输出格式: {args.output_format}")
        print(f"输出目录: {args.output_dir}")
        print()

        try:
            aggregation_fields = validate_aggregation_fields(args.aggregation)
            sort_clock = validate_clock(args.clock)
            output_formats = parse_output_formats(args.output_format)
        except ValueError as e:
            print(f"错误: 参数验证失败 - {e}")
            return 1

        try:
            file_paths = parse_file_paths(args.file)
        except ValueError as e:
            print(f"错误: 解析文件路径失败 - {e}")
            return 1

        print(f"找到 {len(file_paths)} 个文件:")
        for i, file_path in enumerate(file_paths[:5]):
            print(f"  {i+1}. {file_path}")
        if len(file_paths) > 5:
            print(f"  ... 还有 {len(file_paths) - 5} 个文件")

        output_dir = Path(args.output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

        try:
            start_time = time.time()

            generated_files = analyze_files(
                file_paths=file_paths,
                aggregation_spec=aggregation_fields,
                output_dir=str(output_dir),
                label=args.label,
                output_formats=output_formats,
                sort_clock=sort_clock,
                print_markdown=args.print_markdown,
                strict=args.strict,
                max_workers=args.max_workers,
            )

            total_time = time.time() - start_time
            print(f"\n分析完成，总耗时: {total_time:.2f} 秒")

            if not generated_files:
                print("错误: 没有生成任何输出文件")
                return 1

            print("\n生成的文件:")
            for file_path in generated_files:
                print(f"  {file_path}")

            return 0

        except Exception as e:
            print(f"错误: {e}")
            import traceback
            traceback.print_exc()
            return 1
