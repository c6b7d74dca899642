from typing import List, Dict, Any, Optional

from ..core.models import LikeActivity


def likes_from_others(likes: Optional[List[Any]], viewer_id: Optional[str]) -> int:
    """Count likers on a post, ignoring the viewer's own like."""
    me = str(viewer_id) if viewer_id is not None else None
    return sum(1 for uid in (likes or []) if str(uid) != me)


def compute_like_activity(
    own_posts: List[Dict[str, Any]],
    viewer_id: Optional[str],
    previous_post_likes: Dict[str, int],
    previous_total: int,
) -> LikeActivity:
    """
    Compare the likes others gave the viewer's posts against what was seen last.

    Args:
        own_posts: backend rows for the viewer's posts, each {"id", "likes": [user ids]}
        viewer_id: the viewer, whose self-likes never count
        previous_post_likes: post id (as str) -> likes from others last acknowledged
        previous_total: total likes from others last acknowledged

    Returns:
        LikeActivity where new_likes is the larger of the number of posts whose
        count went up and the growth of the total.
    """
    total = 0
    post_likes: Dict[str, int] = {}
    for post in own_posts or []:
        if not isinstance(post, dict) or post.get("id") is None:
            continue
        n = likes_from_others(post.get("likes"), viewer_id)
        total += n
        if n > 0:
            post_likes[str(post["id"])] = n

    increased = []
    for pid, n in post_likes.items():
        if n > int(previous_post_likes.get(pid, 0) or 0):
            increased.append(int(pid))
    increased.sort()

    growth = total - int(previous_total or 0)
    new_likes = max(len(increased), growth if growth > 0 else 0)
    return LikeActivity(
        new_likes=new_likes,
        posts_with_new_likes=increased,
        total_from_others=total,
        post_likes=post_likes,
    )
