#!/usr/bin/env python3
"""
パフォーマンススコアの手動再計算・確認ツール
タスクデータを修正した後などに、対象ユーザーの全チーム分のスコアを作り直す
"""
import argparse
import asyncio
import logging

from dotenv import load_dotenv

from task_scoring.application.dto.member_metrics_dto import PerformanceScoreResponseDto
from task_scoring.context import ScoringDependencies, build_scoring_dependencies
from task_scoring.domain.exceptions import ScoringError

load_dotenv()


async def recompute(deps: ScoringDependencies, user_id: str) -> bool:
    print(f"🧮 スコア再計算: {user_id}")
    result = await deps.recompute_coordinator.recompute_for_user(user_id)
    print(f"   更新: {len(result.updated_team_ids)} チーム / 書き込み: {result.written} 件")
    for team_id in result.skipped_team_ids:
        print(f"   ⏭️ スキップ (不正なID): {team_id}")
    for team_id in result.failed_team_ids:
        print(f"   ❌ 失敗: {team_id}")
    return not result.has_failures


async def show(deps: ScoringDependencies, user_id: str) -> None:
    scores = await deps.score_repository.find_by_user(user_id)
    if not scores:
        print(f"ℹ️ スコアがありません: {user_id}")
        return
    for score in scores:
        dto = PerformanceScoreResponseDto.from_entity(score)
        print(dto.model_dump_json(indent=2))


async def team_summary(deps: ScoringDependencies, team_id: str) -> None:
    summary = await deps.team_activity_service.summarize_team(team_id)
    print(f"📊 チーム {team_id}")
    print(f"   総合スコア: {summary.performance_score}")
    print(f"   完了率: {summary.completion_rate}% ({summary.completed_tasks_count}/{summary.total_tasks})")
    print(f"   平均所要日数: {summary.average_task_duration}")
    for contributor in summary.top_contributors:
        print(f"   👤 {contributor.user_id} [{contributor.role}]: {contributor.performance_score} ({contributor.tasks_completed} 件完了)")


async def run(args: argparse.Namespace) -> bool:
    deps = build_scoring_dependencies()
    success = True
    if args.user:
        success = await recompute(deps, args.user)
        if args.show:
            await show(deps, args.user)
    if args.team_summary:
        await team_summary(deps, args.team_summary)
    return success


def main():
    """メイン実行関数"""
    parser = argparse.ArgumentParser(description='パフォーマンススコアの再計算')
    parser.add_argument('--user', help='再計算するユーザーID')
    parser.add_argument('--show', action='store_true', help='再計算後のスコアを表示')
    parser.add_argument('--team-summary', help='チームの活動サマリーを表示するチームID')
    parser.add_argument('--verbose', action='store_true', help='詳細ログを出力')

    args = parser.parse_args()
    if not args.user and not args.team_summary:
        parser.error('--user か --team-summary のどちらかを指定してください')

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    print("🎯 パフォーマンススコア管理ツール")
    print("=" * 60)

    try:
        success = asyncio.run(run(args))
    except ScoringError as e:
        print(f"\n❌ 処理に失敗しました: {e}")
        raise SystemExit(1)

    if success:
        print("\n🎉 完了!")
    else:
        print("\n⚠️ 一部のチームで失敗しました")
        raise SystemExit(1)


if __name__ == "__main__":
    main()
