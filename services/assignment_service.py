"""
抽籤服務：決定每位參加者要送禮給誰

純計算邏輯，不涉及資料庫和狀態轉換

做法：先把名單洗牌，再讓第 i 位送給第 (i+1) mod n 位。
只要 n >= 2，位移一格就不可能對到自己，所以不需要重抽。
代價是結果永遠是一個包含所有人的大環（A→B→C→A），
不會出現 A↔B、C↔D 這種多個小環的分法。
"""
import random
from typing import Hashable, List, Optional, Sequence, Tuple

MIN_PARTICIPANTS = 2

_system_random = random.SystemRandom()


def assign_recipients(
    participant_ids: Sequence[Hashable],
    rng: Optional[random.Random] = None,
) -> List[Tuple[Hashable, Hashable]]:
    """
    產生 (送禮者, 收禮者) 配對

    參數：
        participant_ids: 參加者 ID（不可重複，至少 2 位）
        rng: 亂數來源；測試時傳入固定 seed 的 random.Random，
             預設用 SystemRandom，參加者無法預測抽籤結果

    返回：
        長度為 n 的 list，每位參加者剛好當一次送禮者、一次收禮者，
        且沒有人抽到自己

    異常：
        ValueError: 少於 2 位或 ID 重複

    範例：
        assign_recipients(["a", "b"]) -> [("a", "b"), ("b", "a")]
                                       或 [("b", "a"), ("a", "b")]
    """
    ids = list(participant_ids)
    if len(ids) < MIN_PARTICIPANTS:
        raise ValueError(
            f"Need at least {MIN_PARTICIPANTS} participants to assign recipients, got {len(ids)}"
        )
    if len(set(ids)) != len(ids):
        raise ValueError("Participant ids must be distinct")

    rng = rng or _system_random
    rng.shuffle(ids)

    n = len(ids)
    return [(ids[i], ids[(i + 1) % n]) for i in range(n)]


def is_derangement(pairs: Sequence[Tuple[Hashable, Hashable]], participant_ids: Sequence[Hashable]) -> bool:
    """
    檢查配對是否合法：名單上每個人剛好送一次、收一次，且沒有人送給自己
    """
    expected = set(participant_ids)
    gifters = [g for g, _ in pairs]
    recipients = [r for _, r in pairs]
    return (
        len(pairs) == len(expected)
        and set(gifters) == expected
        and set(recipients) == expected
        and len(set(gifters)) == len(gifters)
        and len(set(recipients)) == len(recipients)
        and all(g != r for g, r in pairs)
    )
