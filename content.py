"""
Site content managed from the admin panel: blog posts and customer testimonials.
"""

from typing import Dict, List

import database
from database import BLOG_POSTS, TESTIMONIALS, create_document, get_document, get_documents, new_id, utcnow


def get_blog_posts() -> List[Dict]:
    return get_documents(BLOG_POSTS)


def add_blog_post(post: Dict) -> Dict:
    doc = {**post, "author": post.get("author") or "Admin", "date": utcnow()}
    post_id = create_document(BLOG_POSTS, doc, doc_id=new_id("POST"))
    return get_document(BLOG_POSTS, post_id)


def update_blog_post(post_id: str, updates: Dict) -> bool:
    return database.update_document(BLOG_POSTS, post_id, updates)


def delete_blog_post(post_id: str) -> bool:
    return database.delete_document(BLOG_POSTS, post_id)


def get_testimonials(approved_only: bool = True) -> List[Dict]:
    return get_documents(TESTIMONIALS, {"approved": True} if approved_only else None)


def add_testimonial(testimonial: Dict) -> Dict:
    """New testimonials stay hidden until an admin approves them."""
    doc = {**testimonial, "date": utcnow(), "approved": False}
    review_id = create_document(TESTIMONIALS, doc, doc_id=new_id("REV"))
    return get_document(TESTIMONIALS, review_id)


def approve_testimonial(testimonial_id: str) -> bool:
    res = database.collection(TESTIMONIALS).update_one({"_id": testimonial_id}, {"$set": {"approved": True}})
    return res.matched_count > 0


def delete_testimonial(testimonial_id: str) -> bool:
    return database.delete_document(TESTIMONIALS, testimonial_id)
