"""Tracking Codes — third-party tag snippets built from site settings, and HTML injection.

Invariants:
    - IDs are stripped to [A-Za-z0-9_-] before interpolation into script text
    - Verification codes are HTML-escaped before interpolation into attributes
    - Custom head/body HTML is trusted admin input and passed through verbatim
    - Snippets appear in a fixed order; absent settings contribute nothing

Design Decisions:
    - string.Template with safe_substitute: the JS bodies are full of braces, so
      str.format would need every brace doubled
    - Pure over a plain mapping of setting name to value; caching lives in
      services/tracking_code_cache.py
"""

import html
import re
from string import Template
from typing import Mapping

_UNSAFE_ID_CHARS = re.compile(r"[^a-zA-Z0-9_\-]")
_BODY_OPEN = re.compile(r"<body[^>]*>", re.IGNORECASE)

_GTAG_LOADER = (
    '<script async src="https://www.googletagmanager.com/gtag/js?id=$id"></script>'
)

# (setting, head template, body template or None)
_ID_SNIPPETS: tuple[tuple[str, str, str | None], ...] = (
    (
        "google_tag_manager_id",
        "<script>(function(w,d,s,l,i){w[l]=w[l]||[];w[l].push({'gtm.start':new Date().getTime(),"
        "event:'gtm.js'});var f=d.getElementsByTagName(s)[0],j=d.createElement(s),"
        "dl=l!='dataLayer'?'&l='+l:'';j.async=true;j.src='https://www.googletagmanager.com/gtm.js?id='"
        "+i+dl;f.parentNode.insertBefore(j,f);})(window,document,'script','dataLayer','$id');</script>",
        '<noscript><iframe src="https://www.googletagmanager.com/ns.html?id=$id" height="0" '
        'width="0" style="display:none;visibility:hidden"></iframe></noscript>',
    ),
    (
        "google_analytics_id",
        _GTAG_LOADER + "<script>window.dataLayer=window.dataLayer||[];function gtag()"
        "{dataLayer.push(arguments);}gtag('js',new Date());gtag('config','$id');</script>",
        None,
    ),
    (
        "google_ads_id",
        _GTAG_LOADER + "<script>window.dataLayer=window.dataLayer||[];function gtag()"
        "{dataLayer.push(arguments);}gtag('config','$id');</script>",
        None,
    ),
    (
        "facebook_pixel_id",
        "<script>!function(f,b,e,v,n,t,s){if(f.fbq)return;n=f.fbq=function(){n.callMethod?"
        "n.callMethod.apply(n,arguments):n.queue.push(arguments)};if(!f._fbq)f._fbq=n;n.push=n;"
        "n.loaded=!0;n.version='2.0';n.queue=[];t=b.createElement(e);t.async=!0;t.src=v;"
        "s=b.getElementsByTagName(e)[0];s.parentNode.insertBefore(t,s)}(window,document,'script',"
        "'https://connect.facebook.net/en_US/fbevents.js');fbq('init','$id');"
        "fbq('track','PageView');</script>",
        '<noscript><img height="1" width="1" style="display:none" '
        'src="https://www.facebook.com/tr?id=$id&ev=PageView&noscript=1"/></noscript>',
    ),
    (
        "microsoft_ads_id",
        '<script>(function(w,d,t,r,u){var f,n,i;w[u]=w[u]||[],f=function(){var o={ti:"$id",'
        'enableAutoSpaTracking:true};o.q=w[u],w[u]=new UET(o),w[u].push("pageLoad")},'
        "n=d.createElement(t),n.src=r,n.async=1,n.onload=n.onreadystatechange=function(){"
        'var s=this.readyState;s&&s!=="loaded"&&s!=="complete"||(f(),n.onload='
        "n.onreadystatechange=null)},i=d.getElementsByTagName(t)[0],i.parentNode.insertBefore(n,i)})"
        '(window,document,"script","//bat.bing.com/bat.js","uetq");</script>',
        None,
    ),
    (
        "tiktok_pixel_id",
        "<script>!function(w,d,t){w.TiktokAnalyticsObject=t;var ttq=w[t]=w[t]||[];"
        'ttq.methods=["page","track","identify","instances","debug","on","off","once","ready",'
        '"alias","group","enableCookie","disableCookie","holdConsent","revokeConsent","grantConsent"],'
        "ttq.setAndDefer=function(t,e){t[e]=function(){t.push([e].concat(Array.prototype.slice."
        "call(arguments,0)))}};for(var i=0;i<ttq.methods.length;i++)ttq.setAndDefer(ttq,ttq.methods[i]);"
        "ttq.instance=function(t){for(var e=ttq._i[t]||[],n=0;n<ttq.methods.length;n++)"
        "ttq.setAndDefer(e,ttq.methods[n]);return e},ttq.load=function(e,n){var r="
        '"https://analytics.tiktok.com/i18n/pixel/events.js",o=n&&n.partner;ttq._i=ttq._i||{},'
        "ttq._i[e]=[],ttq._i[e]._u=r,ttq._t=ttq._t||{},ttq._t[e]=+new Date,ttq._o=ttq._o||{},"
        'ttq._o[e]=n||{};var i=document.createElement("script");i.type="text/javascript",'
        'i.async=!0,i.src=r+"?sdkid="+e+"&lib="+t;var a=document.getElementsByTagName("script")[0];'
        "a.parentNode.insertBefore(i,a)};ttq.load('$id');ttq.page();}(window,document,'ttq');</script>",
        None,
    ),
    (
        "linkedin_insight_tag_id",
        '<script type="text/javascript">_linkedin_partner_id="$id";window._linkedin_data_partner_ids='
        "window._linkedin_data_partner_ids||[];window._linkedin_data_partner_ids.push("
        '_linkedin_partner_id);</script><script type="text/javascript">(function(l){if(!l){'
        "window.lintrk=function(a,b){window.lintrk.q.push([a,b])};window.lintrk.q=[]}"
        'var s=document.getElementsByTagName("script")[0];var b=document.createElement("script");'
        'b.type="text/javascript";b.async=true;b.src="https://snap.licdn.com/li.lms-analytics/'
        'insight.min.js";s.parentNode.insertBefore(b,s);})(window.lintrk);</script>',
        '<noscript><img height="1" width="1" style="display:none;" alt="" '
        'src="https://px.ads.linkedin.com/collect/?pid=$id&fmt=gif"/></noscript>',
    ),
    (
        "pinterest_tag_id",
        "<script>!function(e){if(!window.pintrk){window.pintrk=function(){window.pintrk.queue.push("
        'Array.prototype.slice.call(arguments))};var n=window.pintrk;n.queue=[],n.version="3.0";'
        'var t=document.createElement("script");t.async=!0,t.src=e;var r=document.'
        'getElementsByTagName("script")[0];r.parentNode.insertBefore(t,r)}}'
        "(\"https://s.pinimg.com/ct/core.js\");pintrk('load','$id');pintrk('page');</script>",
        '<noscript><img height="1" width="1" style="display:none;" alt="" '
        'src="https://ct.pinterest.com/v3/?event=init&tid=$id&noscript=1"/></noscript>',
    ),
    (
        "snapchat_pixel_id",
        '<script type="text/javascript">(function(e,t,n){if(e.snaptr)return;var a=e.snaptr=function()'
        "{a.handleRequest?a.handleRequest.apply(a,arguments):a.queue.push(arguments)};a.queue=[];"
        "var s='script';var r=t.createElement(s);r.async=!0;r.src=n;var u=t.getElementsByTagName(s)[0];"
        "u.parentNode.insertBefore(r,u);})(window,document,'https://sc-static.net/scevent.min.js');"
        "snaptr('init','$id',{});snaptr('track','PAGE_VIEW');</script>",
        None,
    ),
    (
        "twitter_pixel_id",
        "<script>!function(e,t,n,s,u,a){e.twq||(s=e.twq=function(){s.exe?s.exe.apply(s,arguments):"
        "s.queue.push(arguments);},s.version='1.1',s.queue=[],u=t.createElement(n),u.async=!0,"
        "u.src='https://static.ads-twitter.com/uwt.js',a=t.getElementsByTagName(n)[0],"
        "a.parentNode.insertBefore(u,a))}(window,document,'script');twq('config','$id');</script>",
        None,
    ),
    (
        "hotjar_site_id",
        "<script>(function(h,o,t,j,a,r){h.hj=h.hj||function(){(h.hj.q=h.hj.q||[]).push(arguments)};"
        'h._hjSettings={hjid:"$id",hjsv:6};a=o.getElementsByTagName(\'head\')[0];'
        "r=o.createElement('script');r.async=1;r.src=t+h._hjSettings.hjid+j+h._hjSettings.hjsv;"
        "a.appendChild(r);})(window,document,'https://static.hotjar.com/c/hotjar-','.js?sv=');</script>",
        None,
    ),
    (
        "clarity_project_id",
        '<script type="text/javascript">(function(c,l,a,r,i,t,y){c[a]=c[a]||function(){'
        "(c[a].q=c[a].q||[]).push(arguments)};t=l.createElement(r);t.async=1;"
        't.src="https://www.clarity.ms/tag/"+i;y=l.getElementsByTagName(r)[0];'
        'y.parentNode.insertBefore(t,y);})(window,document,"clarity","script","$id");</script>',
        None,
    ),
)

_VERIFICATION_METAS = (
    ("google_search_console_code", "google-site-verification"),
    ("bing_verification_code", "msvalidate.01"),
    ("yandex_verification_code", "yandex-verification"),
)

TRACKING_SETTING_KEYS = (
    *(key for key, _, _ in _ID_SNIPPETS),
    *(key for key, _ in _VERIFICATION_METAS),
    "google_ads_conversion_label",
    "custom_tracking_head",
    "custom_tracking_body",
)


def sanitize_id(value: str) -> str:
    return _UNSAFE_ID_CHARS.sub("", value)


def build_tracking_codes(settings: Mapping[str, str | None]) -> dict[str, str]:
    """{"head": ..., "body": ...} HTML fragments for every configured integration."""
    head: list[str] = []
    body: list[str] = []

    for key, head_tpl, body_tpl in _ID_SNIPPETS:
        raw = settings.get(key)
        if not raw:
            continue
        ident = sanitize_id(raw)
        head.append(Template(head_tpl).safe_substitute(id=ident))
        if body_tpl:
            body.append(Template(body_tpl).safe_substitute(id=ident))

    for key, meta_name in _VERIFICATION_METAS:
        raw = settings.get(key)
        if raw:
            head.append(f'<meta name="{meta_name}" content="{html.escape(raw.strip())}" />')

    if settings.get("custom_tracking_head"):
        head.append(settings["custom_tracking_head"])
    if settings.get("custom_tracking_body"):
        body.append(settings["custom_tracking_body"])

    return {"head": "\n".join(head), "body": "\n".join(body)}


def inject_tracking(page_html: str, codes: Mapping[str, str]) -> str:
    """Insert head codes before </head> and body codes right after the opening <body>."""
    if codes.get("head") and "</head>" in page_html:
        page_html = page_html.replace("</head>", f"{codes['head']}\n</head>", 1)
    if codes.get("body"):
        match = _BODY_OPEN.search(page_html)
        if match:
            page_html = (
                page_html[:match.end()] + "\n" + codes["body"] + page_html[match.end():]
            )
    return page_html
