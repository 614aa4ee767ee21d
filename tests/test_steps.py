"""
@PURPOSE: 测试各阶段步骤处理器(使用 FakeActionSink, 无需浏览器)
@OUTLINE:
  - TestInitialPage / TestSubarea / TestHood: 区域相关步骤
  - TestTypeSelection / TestCategorySelection: 单选步骤
  - TestFormFill: 表单填写, 语言下拉框, 校验提示
  - TestImageUpload: 图片上传
  - TestMapLocation: 地图页
  - TestPreview / TestPublishing / TestDetectCompletion: 发布与完成检测
@DEPENDENCIES:
  - 外部: pytest, pytest-asyncio
  - 内部: autopost.steps, tests.mocks
"""

from pathlib import Path

import pytest

from autopost.browser.selectors import (
    CITY_LINK_SELECTOR,
    FILE_INPUT_SELECTORS,
    FOR_SALE_LINK_SELECTOR,
    RADIO_SELECTOR,
)
from autopost.errors import ErrorKind, ExternalFetchFailure
from autopost.models.outcome import StepStatus
from autopost.models.page import ChoiceOption, SelectState
from autopost.models.phase import Phase
from autopost.models.run import ListingPayload
from autopost.steps import (
    CategorySelectionHandler,
    FormFillHandler,
    HoodSelectionHandler,
    ImageUploadHandler,
    InitialPageHandler,
    MapLocationHandler,
    PreviewHandler,
    PublishingHandler,
    SubareaSelectionHandler,
    TypeSelectionHandler,
    build_default_handlers,
    detect_completion,
)
from autopost.steps.form_fill import LANGUAGE_NOTICE, REVIEW_NOTICE
from autopost.steps.media import MANUAL_UPLOAD_NOTICE, PARTIAL_UPLOAD_NOTICE
from tests.mocks import make_choices

SUBMIT = 'button[type="submit"]'


def select(value, *pairs):
    return SelectState(value=value, options=tuple(ChoiceOption(v, label, i) for i, (v, label) in enumerate(pairs)))


class StubFetcher:
    """图片获取器替身: 返回预设路径或抛出异常."""

    def __init__(self, paths=(), error=None):
        self.paths = [Path(p) for p in paths]
        self.error = error
        self.requested = []

    def select_sources(self, images):
        return list(dict.fromkeys(images))

    async def fetch_all(self, sources):
        self.requested = list(sources)
        if self.error is not None:
            raise self.error
        return list(self.paths)


class TestInitialPage:
    """测试入口页"""

    @pytest.mark.asyncio
    async def test_matching_city_link(self, step_context, fake_sink):
        fake_sink.choices[CITY_LINK_SELECTOR] = make_choices("los angeles", "san francisco bay area")
        outcome = await InitialPageHandler().execute(step_context)
        assert outcome.status is StepStatus.SUCCESS
        assert outcome.flags == {"regionChosen": True}
        assert fake_sink.chosen[0].label == "san francisco bay area"

    @pytest.mark.asyncio
    async def test_unmatched_city_asks_user(self, step_context, fake_sink, recording_notifier):
        fake_sink.choices[CITY_LINK_SELECTOR] = make_choices("los angeles", "seattle")
        step_context.payload = ListingPayload(title="Desk", city="Boise")
        outcome = await InitialPageHandler().execute(step_context)
        assert outcome.status is StepStatus.SKIPPED
        assert fake_sink.actions == []
        assert recording_notifier.messages == ["Please select your city/region to continue"]

    @pytest.mark.asyncio
    async def test_for_sale_link(self, step_context, fake_sink):
        fake_sink.choices[FOR_SALE_LINK_SELECTOR] = make_choices("for sale")
        outcome = await InitialPageHandler().execute(step_context)
        assert outcome.flags == {"sectionChosen": True}

    @pytest.mark.asyncio
    async def test_nothing_actionable(self, step_context, fake_sink, recording_notifier):
        outcome = await InitialPageHandler().execute(step_context)
        assert outcome.status is StepStatus.SKIPPED
        assert fake_sink.actions == []
        assert len(recording_notifier.notices) == 1


class TestSubarea:
    """测试子区域选择"""

    @pytest.mark.asyncio
    async def test_city_maps_to_subarea(self, step_context, fake_sink):
        step_context.payload = ListingPayload(title="Desk", city="Oakland")
        fake_sink.choices[RADIO_SELECTOR] = make_choices("city of san francisco", "east bay area", "peninsula")
        fake_sink.buttons[SUBMIT] = "continue"

        outcome = await SubareaSelectionHandler().execute(step_context)

        assert outcome.flags == {"subareaSelected": True}
        assert fake_sink.chosen[0].label == "east bay area"
        assert fake_sink.clicks == [SUBMIT]

    @pytest.mark.asyncio
    async def test_unknown_city_uses_first_option(self, step_context, fake_sink):
        step_context.payload = ListingPayload(title="Desk", city="Reno")
        fake_sink.choices[RADIO_SELECTOR] = make_choices("north bay / marin", "peninsula")
        outcome = await SubareaSelectionHandler().execute(step_context)
        assert outcome.ok
        assert fake_sink.chosen[0].label == "north bay / marin"

    @pytest.mark.asyncio
    async def test_no_options(self, step_context):
        outcome = await SubareaSelectionHandler().execute(step_context)
        assert outcome.status is StepStatus.FAILURE
        assert outcome.detail == "Could not find subarea selection options"


class TestHood:
    """测试街区选择"""

    @pytest.mark.asyncio
    async def test_zip_lookup(self, step_context, fake_sink):
        fake_sink.choices[RADIO_SELECTOR] = make_choices("bypass this step", "outer richmond", "inner richmond")
        outcome = await HoodSelectionHandler().execute(step_context)
        assert outcome.flags == {"hoodSelected": True}
        assert fake_sink.chosen[0].label == "inner richmond"

    @pytest.mark.asyncio
    async def test_no_target_prefers_bypass(self, step_context, fake_sink):
        step_context.payload = ListingPayload(title="Desk", city="Reno")
        fake_sink.choices[RADIO_SELECTOR] = make_choices("castro", "bypass this step")
        await HoodSelectionHandler().execute(step_context)
        assert fake_sink.chosen[0].label == "bypass this step"

    @pytest.mark.asyncio
    async def test_unmatched_target_uses_first_real_option(self, step_context, fake_sink):
        step_context.payload = ListingPayload(title="Desk", neighborhood="Dogpatch")
        fake_sink.choices[RADIO_SELECTOR] = make_choices("bypass this step", "castro", "sunset")
        await HoodSelectionHandler().execute(step_context)
        assert fake_sink.chosen[0].label == "castro"

    @pytest.mark.asyncio
    async def test_no_options_only_continues(self, step_context, fake_sink):
        fake_sink.buttons[SUBMIT] = "continue"
        outcome = await HoodSelectionHandler().execute(step_context)
        assert outcome.ok
        assert fake_sink.clicks == [SUBMIT]

    @pytest.mark.asyncio
    async def test_nothing_to_do(self, step_context):
        outcome = await HoodSelectionHandler().execute(step_context)
        assert outcome.status is StepStatus.FAILURE


class TestTypeSelection:
    """测试类型选择"""

    @pytest.mark.asyncio
    async def test_owner_by_default(self, step_context, fake_sink):
        fake_sink.choices[RADIO_SELECTOR] = make_choices("for sale by dealer", "for sale by owner")
        outcome = await TypeSelectionHandler().execute(step_context)
        assert outcome.flags == {"typeSelected": True}
        assert fake_sink.chosen[0].label == "for sale by owner"

    @pytest.mark.asyncio
    async def test_dealer(self, step_context, fake_sink):
        step_context.payload = ListingPayload(title="Desk", is_dealer=True)
        fake_sink.choices[RADIO_SELECTOR] = make_choices("for sale by owner", "for sale by dealer")
        await TypeSelectionHandler().execute(step_context)
        assert fake_sink.chosen[0].label == "for sale by dealer"

    @pytest.mark.asyncio
    async def test_falls_back_to_fso_value(self, step_context, fake_sink):
        fake_sink.choices[RADIO_SELECTOR] = make_choices("Particulier", "Professionnel", values=["fso", "fsd"])
        await TypeSelectionHandler().execute(step_context)
        assert fake_sink.chosen[0].value == "fso"

    @pytest.mark.asyncio
    async def test_no_options(self, step_context, fake_sink):
        outcome = await TypeSelectionHandler().execute(step_context)
        assert outcome.detail == "Could not find posting type options"
        assert outcome.error_kind is ErrorKind.ACTION_TARGET_NOT_FOUND
        assert fake_sink.actions == []


class TestCategorySelection:
    """测试类目选择"""

    @pytest.mark.asyncio
    async def test_explicit_category(self, step_context, fake_sink):
        fake_sink.choices[RADIO_SELECTOR] = make_choices("antiques", "furniture - by owner", "general for sale")
        fake_sink.buttons[SUBMIT] = "continue"

        outcome = await CategorySelectionHandler().execute(step_context)

        assert outcome.flags == {"categorySelected": True}
        assert fake_sink.chosen[0].label == "furniture - by owner"
        assert fake_sink.clicks == [SUBMIT]

    @pytest.mark.asyncio
    async def test_inferred_from_title(self, step_context, fake_sink):
        step_context.payload = ListingPayload(title="Honda Civic 2012", price="8500")
        fake_sink.choices[RADIO_SELECTOR] = make_choices("auto parts", "cars & trucks - by owner", "general for sale")
        await CategorySelectionHandler().execute(step_context)
        assert fake_sink.chosen[0].label == "cars & trucks - by owner"

    @pytest.mark.asyncio
    async def test_general_for_sale_fallback(self, step_context, fake_sink):
        step_context.payload = ListingPayload(title="Ring", category="jewelry")
        fake_sink.choices[RADIO_SELECTOR] = make_choices("antiques", "general for sale", "farm & garden")
        await CategorySelectionHandler().execute(step_context)
        assert fake_sink.chosen[0].label == "general for sale"

    @pytest.mark.asyncio
    async def test_no_options(self, step_context, fake_sink):
        outcome = await CategorySelectionHandler().execute(step_context)
        assert outcome.status is StepStatus.FAILURE
        assert outcome.detail == "Could not find category options"
        assert fake_sink.actions == []


@pytest.fixture
def form_sink(fake_sink):
    """位于表单页的模拟页面."""
    fake_sink.url = "https://post.craigslist.org/k/abc123/sfo?s=edit"
    fake_sink.present.update({"#PostingTitle", "#price", "#postal_code", "textarea#PostingBody"})
    fake_sink.selects['select[name="condition"]'] = select("", ("", "-"), ("40", "like new"), ("50", "good"))
    fake_sink.selects['select[name="language"]'] = select("", ("", "-"), ("2", "Español"), ("5", "English"))
    fake_sink.buttons[SUBMIT] = "continue"
    return fake_sink


class TestFormFill:
    """测试表单填写"""

    @pytest.mark.asyncio
    async def test_fills_all_fields(self, step_context, form_sink, recording_channel):
        outcome = await FormFillHandler().execute(step_context)

        assert outcome.status is StepStatus.SUCCESS
        assert form_sink.filled == {
            "#PostingTitle": "Oak dining table",
            "#price": "1250",
            "#postal_code": "94118",
            "textarea#PostingBody": "Solid oak table, seats six.",
        }
        assert form_sink.selected == {'select[name="condition"]': "40", 'select[name="language"]': "5"}
        assert outcome.flags == {
            "titleFilled": True,
            "priceFilled": True,
            "postalFilled": True,
            "descriptionFilled": True,
            "conditionSet": True,
            "languageSet": True,
            "formFilled": True,
        }
        assert form_sink.clicks == [SUBMIT]
        progress = [m["progress"]["current"] for m in recording_channel.of("update_progress")]
        assert progress == [55, 60, 65, 70, 75]

    @pytest.mark.asyncio
    async def test_price_hint_fallback(self, step_context, form_sink):
        form_sink.present.discard("#price")
        form_sink.present.add('input[name*="price"]')
        outcome = await FormFillHandler().execute(step_context)
        assert outcome.flags["priceFilled"]
        assert form_sink.filled['input[name*="price"]'] == "1250"

    @pytest.mark.asyncio
    async def test_optional_fields_and_delivery(self, step_context, form_sink):
        step_context.payload = ListingPayload(
            title="Trek bike", brand="Trek", model="FX 2", size="M", delivery_available=True
        )
        form_sink.present.update({'input[name="FromManufacturer"]', 'input[name="ModelName"]', 'input[name="FromSize"]'})
        form_sink.present.add('input[id*="delivery"]')

        outcome = await FormFillHandler().execute(step_context)

        assert outcome.flags["makeFilled"] and outcome.flags["modelFilled"] and outcome.flags["sizeFilled"]
        assert outcome.flags["deliverySet"]
        assert form_sink.checked == ['input[id*="delivery"]']

    @pytest.mark.asyncio
    async def test_language_already_set(self, step_context, form_sink):
        form_sink.selects['select[name="language"]'] = select("2", ("", "-"), ("2", "Español"), ("5", "English"))
        outcome = await FormFillHandler().execute(step_context)
        assert outcome.flags["languageSet"]
        assert 'select[name="language"]' not in form_sink.selected

    @pytest.mark.asyncio
    async def test_language_absent_is_not_fatal(self, step_context, form_sink):
        del form_sink.selects['select[name="language"]']
        outcome = await FormFillHandler().execute(step_context)
        assert outcome.ok
        assert "languageSet" not in outcome.flags

    @pytest.mark.asyncio
    async def test_unresolvable_language_blocks_continue(self, step_context, form_sink, recording_notifier):
        form_sink.selects['select[name="language"]'] = select("", ("", "-"), ("-", "--"))
        outcome = await FormFillHandler().execute(step_context)

        assert outcome.status is StepStatus.FAILURE
        assert outcome.error_kind is ErrorKind.VALIDATION_BLOCKED
        assert outcome.flags["titleFilled"]
        assert form_sink.clicks == []
        assert (LANGUAGE_NOTICE, "warning") in recording_notifier.notices

    @pytest.mark.asyncio
    async def test_validation_errors_are_reported(self, step_context, form_sink, recording_notifier):
        form_sink.errors = ["Price is required"]
        outcome = await FormFillHandler().execute(step_context)
        assert outcome.ok
        assert ("⚠️ Form errors: Price is required", "warning") in recording_notifier.notices

    @pytest.mark.asyncio
    async def test_missing_continue_asks_for_review(self, step_context, form_sink, recording_notifier):
        form_sink.buttons.clear()
        outcome = await FormFillHandler().execute(step_context)
        assert outcome.ok
        assert REVIEW_NOTICE in recording_notifier.messages

    @pytest.mark.asyncio
    async def test_title_marker_timeout(self, step_context, fake_sink):
        outcome = await FormFillHandler().execute(step_context)
        assert outcome.status is StepStatus.FAILURE
        assert outcome.error_kind is ErrorKind.PHASE_TIMEOUT
        assert fake_sink.actions == []


class TestImageUpload:
    """测试图片上传"""

    @pytest.fixture
    def upload_sink(self, fake_sink):
        fake_sink.url = "https://post.craigslist.org/k/abc123/sfo?s=editimage"
        fake_sink.present.add(FILE_INPUT_SELECTORS[0])
        fake_sink.buttons["button.done"] = "done with images"
        return fake_sink

    @pytest.mark.asyncio
    async def test_no_images_just_continues(self, step_context, upload_sink):
        upload_sink.buttons[SUBMIT] = "continue"
        outcome = await ImageUploadHandler(StubFetcher()).execute(step_context)
        assert outcome.status is StepStatus.SUCCESS
        assert upload_sink.attached == []
        assert upload_sink.clicks == [SUBMIT]

    @pytest.mark.asyncio
    async def test_uploads_and_clicks_done(self, step_context, upload_sink, fake_clock, recording_channel):
        step_context.payload = ListingPayload(title="Desk", images=["https://img/a.jpg", "https://img/b.jpg"])
        fetcher = StubFetcher(paths=["/tmp/a.jpg", "/tmp/b.jpg"])

        outcome = await ImageUploadHandler(fetcher).execute(step_context)

        assert outcome.flags == {"imagesUploaded": True}
        assert upload_sink.attached == [Path("/tmp/a.jpg"), Path("/tmp/b.jpg")]
        assert upload_sink.clicks == ["button.done"]
        assert fake_clock.sleeps == [3.0]
        assert recording_channel.messages[-1]["progress"]["current"] == 85

    @pytest.mark.asyncio
    async def test_partial_upload_notice(self, step_context, upload_sink, recording_notifier):
        step_context.payload = ListingPayload(title="Desk", images=["https://img/a.jpg", "https://img/b.jpg"])
        outcome = await ImageUploadHandler(StubFetcher(paths=["/tmp/a.jpg"])).execute(step_context)
        assert outcome.ok
        assert (PARTIAL_UPLOAD_NOTICE, "warning") in recording_notifier.notices

    @pytest.mark.asyncio
    async def test_all_fetches_failed(self, step_context, upload_sink, recording_notifier):
        step_context.payload = ListingPayload(title="Desk", images=["https://img/a.jpg"])
        fetcher = StubFetcher(error=ExternalFetchFailure("Could not fetch any of 1 images"))

        outcome = await ImageUploadHandler(fetcher).execute(step_context)

        assert outcome.status is StepStatus.FAILURE
        assert outcome.error_kind is ErrorKind.EXTERNAL_FETCH_FAILURE
        assert (MANUAL_UPLOAD_NOTICE, "warning") in recording_notifier.notices
        assert upload_sink.attached == []

    @pytest.mark.asyncio
    async def test_missing_file_input(self, step_context, fake_sink, recording_notifier):
        step_context.payload = ListingPayload(title="Desk", images=["https://img/a.jpg"])
        outcome = await ImageUploadHandler(StubFetcher(paths=["/tmp/a.jpg"])).execute(step_context)
        assert outcome.status is StepStatus.SKIPPED
        assert outcome.detail == "File input not found"
        assert MANUAL_UPLOAD_NOTICE in recording_notifier.messages

    @pytest.mark.asyncio
    async def test_already_uploaded(self, step_context, upload_sink):
        step_context.payload = ListingPayload(title="Desk", images=["https://img/a.jpg"])
        step_context.flags["imagesUploaded"] = True
        fetcher = StubFetcher(paths=["/tmp/a.jpg"])
        await ImageUploadHandler(fetcher).execute(step_context)
        assert fetcher.requested == []
        assert upload_sink.attached == []


class TestMapLocation:
    """测试地图页"""

    @pytest.mark.asyncio
    async def test_fills_streets_and_continues(self, step_context, fake_sink):
        step_context.payload = ListingPayload(title="Desk", address="Clement St", cross_street="5th Ave")
        fake_sink.present.update({'input[name="xstreet0"]', 'input[name="xstreet1"]'})
        fake_sink.buttons[SUBMIT] = "continue"

        outcome = await MapLocationHandler().execute(step_context)

        assert outcome.flags == {"addressFilled": True, "crossStreetFilled": True, "mapLocationSet": True}

    @pytest.mark.asyncio
    async def test_no_continue(self, step_context):
        outcome = await MapLocationHandler().execute(step_context)
        assert outcome.detail == "Could not find continue button on map page"


class TestPreview:
    """测试预览页"""

    @pytest.mark.asyncio
    async def test_publish_and_complete(self, step_context, fake_sink):
        fake_sink.buttons["button.bigbutton"] = "Publish"
        fake_sink.texts = ["Thanks for posting with us"]

        outcome = await PreviewHandler().execute(step_context)

        assert outcome.completed
        assert not outcome.requires_confirmation
        assert outcome.flags == {"publishClicked": True}
        assert step_context.flags["publishClicked"]

    @pytest.mark.asyncio
    async def test_publish_without_completion_yet(self, step_context, fake_sink):
        fake_sink.buttons["button.bigbutton"] = "Publish"
        fake_sink.texts = ["Your listing preview"]
        outcome = await PreviewHandler().execute(step_context)
        assert outcome.status is StepStatus.SUCCESS
        assert not outcome.completed

    @pytest.mark.asyncio
    async def test_falls_back_to_continue(self, step_context, fake_sink):
        fake_sink.buttons[SUBMIT] = "continue"
        outcome = await PreviewHandler().execute(step_context)
        assert outcome.detail == "Continued from preview"
        assert "publishClicked" not in step_context.flags

    @pytest.mark.asyncio
    async def test_no_buttons(self, step_context):
        outcome = await PreviewHandler().execute(step_context)
        assert outcome.status is StepStatus.FAILURE


class TestPublishing:
    """测试发布页"""

    @pytest.mark.asyncio
    async def test_already_complete(self, step_context, fake_sink):
        fake_sink.texts = ["Your posting can be seen at https://sfbay.craigslist.org/..."]
        outcome = await PublishingHandler().execute(step_context)
        assert outcome.completed
        assert fake_sink.actions == []

    @pytest.mark.asyncio
    async def test_clicks_once_and_waits(self, step_context, fake_sink):
        fake_sink.buttons["button.bigbutton"] = "publish"
        fake_sink.texts = ["publishing", "publishing", "thanks for posting"]

        outcome = await PublishingHandler().execute(step_context)

        assert outcome.completed
        assert fake_sink.clicks == ["button.bigbutton"]
        assert outcome.flags == {"publishClicked": True}

    @pytest.mark.asyncio
    async def test_does_not_click_twice(self, step_context, fake_sink):
        step_context.flags["publishClicked"] = True
        fake_sink.buttons["button.bigbutton"] = "publish"
        fake_sink.texts = ["publishing", "Please check your email to confirm your posting"]

        outcome = await PublishingHandler().execute(step_context)

        assert fake_sink.clicks == []
        assert outcome.completed
        assert outcome.requires_confirmation

    @pytest.mark.asyncio
    async def test_navigation_during_wait_is_cancelled(self, step_context, fake_sink):
        fake_sink.buttons["button.bigbutton"] = "publish"
        reads = []

        async def page_text():
            reads.append(1)
            if len(reads) > 1:
                fake_sink.url = f"https://post.craigslist.org/k/abc123/sfo?s=redirect&n={len(reads)}"
            return "publishing"

        fake_sink.page_text = page_text
        outcome = await PublishingHandler().execute(step_context)

        assert outcome.cancelled
        assert outcome.ok
        assert outcome.flags == {"publishClicked": True}

    @pytest.mark.asyncio
    async def test_timeout(self, step_context, fake_sink):
        fake_sink.buttons["button.bigbutton"] = "publish"
        fake_sink.texts = ["publishing"]
        outcome = await PublishingHandler().execute(step_context)
        assert outcome.status is StepStatus.FAILURE
        assert outcome.error_kind is ErrorKind.PHASE_TIMEOUT
        assert outcome.flags == {"publishClicked": True}


class TestDetectCompletion:
    """测试完成检测"""

    @pytest.mark.parametrize(
        "text",
        ["Thanks for posting!", "Your posting can be seen at ...", "manage posting", "Posting has been published"],
    )
    def test_success_phrases(self, text):
        completion = detect_completion(text)
        assert completion is not None
        assert not completion.requires_confirmation

    @pytest.mark.parametrize("text", ["Check your email to confirm", "We sent an email. Please verify it."])
    def test_email_confirmation(self, text):
        assert detect_completion(text).requires_confirmation

    @pytest.mark.parametrize("text", ["", None, "Preview your listing", "email us"])
    def test_not_complete(self, text):
        assert detect_completion(text) is None


def test_default_handlers_cover_every_step_phase():
    handlers = build_default_handlers(StubFetcher())
    assert set(handlers) == {
        Phase.INITIAL_PAGE,
        Phase.SUBAREA_SELECTION,
        Phase.HOOD_SELECTION,
        Phase.TYPE_SELECTION,
        Phase.CATEGORY_SELECTION,
        Phase.FORM_FILL,
        Phase.IMAGE_UPLOAD,
        Phase.MAP_LOCATION,
        Phase.PREVIEW,
        Phase.PUBLISHING,
    }
