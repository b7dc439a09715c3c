"""
Template Service

System template seeding plus owner-aware template lookup.

System templates are immutable, visible to every user, and seeded once;
re-running the seed inserts only templates that are missing.
"""
import json
import logging
from typing import Optional, List, Dict, Any

from app.domain.context import UserContext
from app.domain.errors import NotFoundError

logger = logging.getLogger(__name__)


def _tier(name: str, price_min: int, price_max: int, timeline: str,
          description: str = "", features: Optional[List[str]] = None) -> Dict[str, Any]:
    return {
        "name": name,
        "description": description,
        "price_min": price_min,
        "price_max": price_max,
        "features": features or [],
        "timeline": timeline,
    }


def _system_template(
    name: str,
    description: str,
    category: str,
    tags: List[str],
    content: Dict[str, str],
    pricing: Dict[str, Dict[str, Any]],
    estimated_time_minutes: int
) -> Dict[str, Any]:
    return {
        "name": name,
        "description": description,
        "category": category,
        "tags": json.dumps(tags),
        "content": json.dumps(content),
        "default_pricing": json.dumps(pricing),
        "estimated_time_minutes": estimated_time_minutes,
    }


SYSTEM_TEMPLATES: List[Dict[str, Any]] = [
    _system_template(
        name="Web Development Project",
        description="Complete template for custom website development projects",
        category="Web Development",
        tags=["web", "development", "website", "custom"],
        content={
            "introduction": "Thank you for considering us for your web development project. We're excited to help bring your vision to life with a modern, responsive website.",
            "problem_statement": "We understand that [CLIENT_NAME] needs a professional web presence that showcases your services and converts visitors into customers.",
            "proposed_solution": "We'll design and develop a custom website using modern technologies, ensuring it's fast, secure, and optimized for search engines. The site will be fully responsive across all devices.",
            "methodology": "Our development process: 1) Discovery & Planning, 2) Design Mockups & Approval, 3) Development & Testing, 4) Launch & Training.",
            "deliverables": "- Fully responsive website\n- Content Management System (CMS)\n- SEO optimization\n- Analytics integration\n- 30 days post-launch support",
            "timeline": "- Week 1-2: Discovery & Design\n- Week 3-5: Development\n- Week 6: Testing & Refinement\n- Week 7: Launch",
            "team_and_experience": "Our team has delivered 100+ successful web projects using modern frameworks.",
            "terms_and_conditions": "50% deposit required to begin. Final payment due upon project completion.",
            "call_to_action": "We're ready to start building your website. Let's schedule a kickoff call to discuss next steps!",
        },
        pricing={
            "basic": _tier("Starter Website", 3000, 5000, "4 weeks", "Perfect for small businesses",
                           ["5-page website", "Mobile responsive", "Basic SEO", "Contact form"]),
            "standard": _tier("Professional Website", 7000, 12000, "6-8 weeks", "For growing businesses",
                              ["10-15 pages", "Custom design", "CMS integration", "Advanced SEO", "Blog setup"]),
            "premium": _tier("Enterprise Website", 15000, 30000, "10-12 weeks", "Full-featured solution",
                             ["Unlimited pages", "Custom functionality", "E-commerce", "API integrations", "Premium support"]),
        },
        estimated_time_minutes=15,
    ),
    _system_template(
        name="Digital Marketing Campaign",
        description="Comprehensive digital marketing strategy and execution",
        category="Marketing",
        tags=["marketing", "digital", "social media", "ads"],
        content={
            "introduction": "We're thrilled to present our digital marketing strategy to help [CLIENT_NAME] achieve your business growth goals.",
            "problem_statement": "In today's competitive landscape, you need a data-driven marketing approach to reach and convert your target audience.",
            "proposed_solution": "We'll create and execute a digital marketing campaign covering social media management, paid advertising, content marketing, and email campaigns.",
            "methodology": "1) Market Research & Audience Analysis, 2) Strategy Development, 3) Campaign Launch, 4) Ongoing Optimization & Reporting.",
            "deliverables": "- Marketing strategy document\n- Social media content calendar\n- Ad campaign management\n- Monthly performance reports\n- ROI tracking dashboard",
            "timeline": "- Month 1: Strategy & Setup\n- Months 2-6: Campaign Execution\n- Ongoing: Optimization",
            "team_and_experience": "Our marketing team has driven $10M+ in client revenue through digital campaigns.",
            "terms_and_conditions": "Monthly retainer with 3-month minimum commitment. Ad spend billed separately.",
            "call_to_action": "Let's start growing your business together. Schedule a strategy session to get started!",
        },
        pricing={
            "basic": _tier("Starter", 2000, 3000, "Monthly"),
            "standard": _tier("Growth", 5000, 8000, "Monthly"),
            "premium": _tier("Enterprise", 10000, 20000, "Monthly"),
        },
        estimated_time_minutes=20,
    ),
    _system_template(
        name="Brand Identity Design",
        description="Complete brand identity and design system",
        category="Design",
        tags=["design", "branding", "logo", "identity"],
        content={
            "introduction": "We're excited to help [CLIENT_NAME] create a memorable brand identity that resonates with your audience.",
            "problem_statement": "A strong brand identity is crucial for standing out in your market and building customer loyalty.",
            "proposed_solution": "We'll develop a complete brand identity including logo design, color palette, typography, and brand guidelines.",
            "methodology": "1) Brand Discovery, 2) Concept Development, 3) Design Refinement, 4) Brand Guide Creation.",
            "deliverables": "- Logo design (3 concepts)\n- Color palette\n- Typography system\n- Brand guidelines document\n- Final files in all formats",
            "timeline": "- Week 1-2: Discovery & Concepts\n- Week 3-4: Refinement\n- Week 5: Finalization",
            "team_and_experience": "Our design team has created brand identities for 200+ companies.",
            "terms_and_conditions": "50% deposit to start. 3 rounds of revisions included.",
            "call_to_action": "Ready to build a brand that stands out? Let's create something together!",
        },
        pricing={
            "basic": _tier("Logo Only", 1500, 3000, "2-3 weeks"),
            "standard": _tier("Brand Identity", 5000, 8000, "4-5 weeks"),
            "premium": _tier("Complete Branding", 10000, 15000, "6-8 weeks"),
        },
        estimated_time_minutes=15,
    ),
    _system_template(
        name="Business Consulting Services",
        description="Strategic business consulting and advisory",
        category="Consulting",
        tags=["consulting", "strategy", "business", "advisory"],
        content={
            "introduction": "Thank you for the opportunity to support [CLIENT_NAME] with strategic business consulting.",
            "problem_statement": "Every business faces unique challenges. You need expert guidance to navigate growth, optimize operations, and reach your strategic objectives.",
            "proposed_solution": "We'll analyze your current state, identify opportunities, and implement solutions that drive measurable results.",
            "methodology": "1) Current State Assessment, 2) Gap Analysis, 3) Strategy Development, 4) Implementation Support, 5) Performance Monitoring.",
            "deliverables": "- Assessment report\n- Strategic recommendations\n- Implementation roadmap\n- Weekly progress meetings\n- KPI tracking dashboard",
            "timeline": "- Week 1-2: Assessment\n- Week 3-4: Strategy Development\n- Ongoing: Implementation Support",
            "team_and_experience": "Our consultants have 20+ years combined experience helping businesses scale from $1M to $50M+.",
            "terms_and_conditions": "Engagement billed monthly. Minimum 3-month commitment recommended.",
            "call_to_action": "Let's discuss how we can help accelerate your growth. Schedule a consultation today!",
        },
        pricing={
            "basic": _tier("Advisory", 5000, 8000, "Monthly"),
            "standard": _tier("Strategic Partnership", 12000, 20000, "Monthly"),
            "premium": _tier("Full Engagement", 25000, 50000, "Monthly"),
        },
        estimated_time_minutes=20,
    ),
    _system_template(
        name="Content Writing Services",
        description="Professional content creation for blogs, websites, and marketing",
        category="Writing",
        tags=["writing", "content", "copywriting", "blog"],
        content={
            "introduction": "We're excited to help [CLIENT_NAME] create compelling content that engages your audience and drives results.",
            "problem_statement": "Quality content is essential for SEO, audience engagement, and thought leadership in your industry.",
            "proposed_solution": "We'll create SEO-optimized content tailored to your brand voice and marketing objectives.",
            "methodology": "1) Content Strategy, 2) Research & Outlining, 3) Writing & Editing, 4) SEO Optimization, 5) Revision & Approval.",
            "deliverables": "- [X] blog posts per month\n- SEO keyword optimization\n- Meta descriptions\n- Image suggestions\n- Content calendar",
            "timeline": "Delivered weekly or monthly based on package",
            "team_and_experience": "Our writers have published 1000+ articles across major publications and industry blogs.",
            "terms_and_conditions": "Monthly retainer. 2 rounds of revisions per piece included.",
            "call_to_action": "Ready to elevate your content strategy? Let's create content that converts!",
        },
        pricing={
            "basic": _tier("4 Posts/Month", 1200, 2000, "Monthly"),
            "standard": _tier("8 Posts/Month", 2200, 3500, "Monthly"),
            "premium": _tier("12 Posts/Month", 4000, 6000, "Monthly"),
        },
        estimated_time_minutes=15,
    ),
]


class TemplateService:
    """Service for proposal templates."""

    def __init__(self, template_repo):
        self.template_repo = template_repo

    def seed_system_templates(self) -> int:
        """Insert missing system templates. Safe to call on every startup."""
        inserted = self.template_repo.seed_system_templates(SYSTEM_TEMPLATES)
        if not inserted:
            logger.info("[TemplateService] System templates already exist, skipping seed")
        return inserted

    def list_templates(self, ctx: UserContext, category: Optional[str] = None) -> List[Dict[str, Any]]:
        return self.template_repo.list_accessible(ctx.user_id, category=category)

    def get_template(self, ctx: UserContext, template_id: str) -> Dict[str, Any]:
        template = self.template_repo.get_accessible(template_id, ctx.user_id)
        if not template:
            raise NotFoundError(f"Template {template_id} not found")
        return template

    def find_template(self, ctx: UserContext, template_id: str) -> Optional[Dict[str, Any]]:
        """Like get_template, but returns None when missing or not accessible."""
        return self.template_repo.get_accessible(template_id, ctx.user_id)

    def increment_usage(self, template_id: str) -> None:
        """Count one use of a template. Failures are logged, never raised."""
        try:
            self.template_repo.increment_usage(template_id)
        except Exception as e:
            logger.error(f"[TemplateService] Failed to increment usage for {template_id}: {e}")


# Singleton instance
_template_service_instance: Optional[TemplateService] = None


def get_template_service() -> TemplateService:
    """Get or create singleton TemplateService instance."""
    global _template_service_instance
    if _template_service_instance is None:
        from app.infra.mongodb.repositories import get_template_repo
        _template_service_instance = TemplateService(get_template_repo())
    return _template_service_instance
