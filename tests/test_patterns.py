"""Tests for glob helpers."""

import pytest

from tasker.patterns import (
    absolute_src,
    compile_glob,
    expand,
    has_wildcard,
    is_recursive,
    static_prefix,
)


class TestAbsoluteSrc:
    """Tests for absolute_src()."""

    def test_relative_glob(self):
        """Test that a plain relative glob is placed under the base."""
        assert absolute_src('client/**/*.css', '/app') == ['/app/client/**/*.css']

    def test_dot_slash_is_stripped(self):
        """Test that a leading ./ is replaced by the base."""
        assert absolute_src('./*.js', '/app') == ['/app/*.js']

    def test_leading_slash_is_stripped(self):
        """Test that a leading / is app-relative, not filesystem-absolute."""
        assert absolute_src('/lib/*.js', '/app') == ['/app/lib/*.js']

    def test_list_of_globs(self):
        """Test that order is preserved for several globs."""
        result = absolute_src(['a/*.js', './b/*.js'], '/app/')
        assert result == ['/app/a/*.js', '/app/b/*.js']


class TestStaticPrefix:
    """Tests for static_prefix() and is_recursive()."""

    @pytest.mark.parametrize('pattern,expected', [
        ('/a/client/**/*.less', '/a/client'),
        ('/a/*.js', '/a'),
        ('/a/b/file.js', '/a/b'),
        ('/a/*/x/*.js', '/a'),
        ('*.js', ''),
        ('/*.js', '/'),
    ])
    def test_static_prefix(self, pattern, expected):
        assert static_prefix(pattern) == expected

    def test_is_recursive(self):
        """Test detection of matches below the prefix directory."""
        assert is_recursive('/a/client/**/*.less')
        assert is_recursive('/a/*/x.js')
        assert not is_recursive('/a/*.js')
        assert not is_recursive('/a/b/file.js')

    def test_has_wildcard(self):
        assert has_wildcard('*.js')
        assert has_wildcard('{a,b}')
        assert not has_wildcard('client')


class TestCompileGlob:
    """Tests for compile_glob()."""

    def test_star_does_not_cross_directories(self):
        regex = compile_glob('/app/*.js')
        assert regex.match('/app/main.js')
        assert not regex.match('/app/lib/main.js')

    def test_globstar_matches_zero_or_more_directories(self):
        regex = compile_glob('/app/client/**/*.less')
        assert regex.match('/app/client/site.less')
        assert regex.match('/app/client/a/b/site.less')
        assert not regex.match('/app/server/site.less')

    def test_question_mark_and_braces(self):
        regex = compile_glob('/app/v?/*.{js,jsx}')
        assert regex.match('/app/v1/x.js')
        assert regex.match('/app/v2/x.jsx')
        assert not regex.match('/app/v10/x.js')
        assert not regex.match('/app/v1/x.css')

    def test_character_class(self):
        regex = compile_glob('/app/[!_]*.js')
        assert regex.match('/app/main.js')
        assert not regex.match('/app/_private.js')

    def test_literal_dots_are_escaped(self):
        regex = compile_glob('/app/*.css')
        assert not regex.match('/app/mainxcss')


class TestExpand:
    """Tests for expand()."""

    def test_expand_recursive(self, tmp_path):
        (tmp_path / 'client' / 'a').mkdir(parents=True)
        (tmp_path / 'client' / 'top.less').write_text('')
        (tmp_path / 'client' / 'a' / 'deep.less').write_text('')
        (tmp_path / 'client' / 'skip.css').write_text('')

        result = expand([f'{tmp_path}/client/**/*.less'])

        paths = sorted(p for p, _ in result)
        assert paths == [
            f'{tmp_path}/client/a/deep.less',
            f'{tmp_path}/client/top.less',
        ]
        assert all(base == f'{tmp_path}/client' for _, base in result)

    def test_expand_braces_and_dedupe(self, tmp_path):
        (tmp_path / 'a.js').write_text('')
        (tmp_path / 'b.jsx').write_text('')

        result = expand([f'{tmp_path}/*.{{js,jsx}}', f'{tmp_path}/a.js'])

        assert [p for p, _ in result] == [f'{tmp_path}/a.js', f'{tmp_path}/b.jsx']

    def test_directories_are_skipped(self, tmp_path):
        (tmp_path / 'dir.js').mkdir()
        assert expand([f'{tmp_path}/*.js']) == []
