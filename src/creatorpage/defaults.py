"""
Compiled default content.

DEFAULT_DATA is what a fresh install shows and what reset() restores.
It is also the base every partial payload is healed against.
"""

from __future__ import annotations

from typing import Any

from .models import (
    AppData,
    CollectionKind,
    Content,
    GalleryItem,
    Profile,
    RankItem,
    ScheduleItem,
    Stats,
)

ADMIN_SALT = "4f7a1c9e2b"
ADMIN_DIGEST = "8dbdd28c01d52a8563d3aab9560f2f0f3eaa6b9536a2faed5d3054472e73623a"

_AVATAR = "https://picsum.photos/50/50?random={}"
_PHOTO = "https://picsum.photos/400/300?random={}"


def _ranked(prefix: str, rows: list[tuple[str, str, int]], seed: int) -> list[RankItem]:
    return [
        RankItem(
            id=f"{prefix}{i}",
            rank=i,
            name=name,
            youtube_handle=handle,
            points=points,
            avatar=_AVATAR.format(seed + i - 1),
        )
        for i, (name, handle, points) in enumerate(rows, start=1)
    ]


DEFAULT_DATA = AppData(
    profile=Profile(
        name="AdmudCraft",
        tagline="Digital Crafter & Redstone Engineer",
        avatar="https://picsum.photos/200/200?random=99",
        youtube_url="https://youtube.com/@admudcraft",
        tiktok_url="https://tiktok.com/@admudcraft",
        discord_url="https://discord.gg/4YrY3ruMvg",
        store_url="https://adhost-phi.vercel.app",
        second_store_url="https://billing.mineidhost.com?ref=Admud-Jawa",
        support_url="https://sociabuzz.com/admud/tribe",
    ),
    content=Content(
        youtube_id="MmB9b5njVbA",
        tiktok_url="https://www.tiktok.com/@admudcraft/video/7359154398421234955",
    ),
    stats=Stats(subscribers=12500, followers=45000, total_views=1200000),
    schedule=[
        ScheduleItem(id="1", day="Monday", activity="Survival Minecraft", time="19:00", badge="Live"),
        ScheduleItem(id="2", day="Tuesday", activity="Off Stream / Editing", time="-", badge="Off"),
        ScheduleItem(id="3", day="Wednesday", activity="Community Server", time="20:00", badge="Mabar"),
        ScheduleItem(id="4", day="Thursday", activity="Subscriber Map Review", time="19:30", badge="Live"),
        ScheduleItem(id="5", day="Friday", activity="Giveaway Friday", time="16:00", badge="Event"),
        ScheduleItem(id="6", day="Saturday", activity="Marathon Stream", time="13:00", badge="Long"),
        ScheduleItem(id="7", day="Sunday", activity="Rest / Random Game", time="Tentative", badge="Chill"),
    ],
    rank=_ranked("r", [
        ("SultanCraft_99", "@sultancraft", 15000),
        ("MinerPro_ID", "@minerpro", 12400),
        ("RedstoneMaster", "@redstone", 11000),
        ("CreeperHugger", "@creeper", 9500),
        ("DiamondHunter", "@diamond", 8200),
    ], seed=1),
    moderators=_ranked("m", [
        ("Admin_Ganteng", "@admin_ganteng", 99999),
        ("Bot_Police", "@bot_police", 8888),
        ("Helper_Santuy", "@helper_santuy", 5555),
        ("Mod_Baru_Rekrut", "@mod_baru", 3000),
    ], seed=20),
    gallery=[GalleryItem(id=f"g{i}", src=_PHOTO.format(9 + i)) for i in range(1, 5)],
    last_updated=0,
)

# Field values for items created by add_item(), and the base that
# unmatched incoming items are healed against. Ids are assigned separately.
BLANK_ITEMS: dict[CollectionKind, dict[str, Any]] = {
    CollectionKind.SCHEDULE: {
        "day": "New day",
        "activity": "Describe the activity...",
        "time": "00:00",
        "badge": "Live",
    },
    CollectionKind.RANK: {
        "rank": 1,
        "name": "Member name",
        "points": 0,
        "avatar": "https://ui-avatars.com/api/?name=Member&background=random",
    },
    CollectionKind.MODERATORS: {
        "rank": 1,
        "name": "Moderator name",
        "points": 0,
        "avatar": "https://ui-avatars.com/api/?name=Mod&background=random",
    },
    CollectionKind.GALLERY: {
        "src": "https://picsum.photos/400/300",
    },
}


def default_app_data() -> AppData:
    """Return an independent copy of the compiled defaults."""
    return DEFAULT_DATA.model_copy(deep=True)
