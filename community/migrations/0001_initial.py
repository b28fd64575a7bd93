import community.models
import django.contrib.auth.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('auth', '0012_alter_user_first_name_max_length'),
    ]

    operations = [
        migrations.CreateModel(
            name='User',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('password', models.CharField(max_length=128, verbose_name='password')),
                ('last_login', models.DateTimeField(blank=True, null=True, verbose_name='last login')),
                ('is_superuser', models.BooleanField(default=False, help_text='Designates that this user has all permissions without explicitly assigning them.', verbose_name='superuser status')),
                ('username', models.CharField(error_messages={'unique': 'A user with that username already exists.'}, help_text='Required. 150 characters or fewer. Letters, digits and @/./+/-/_ only.', max_length=150, unique=True, validators=[django.contrib.auth.validators.UnicodeUsernameValidator()], verbose_name='username')),
                ('first_name', models.CharField(blank=True, max_length=150, verbose_name='first name')),
                ('last_name', models.CharField(blank=True, max_length=150, verbose_name='last name')),
                ('is_staff', models.BooleanField(default=False, help_text='Designates whether the user can log into this admin site.', verbose_name='staff status')),
                ('is_active', models.BooleanField(default=True, help_text='Designates whether this user should be treated as active. Unselect this instead of deleting accounts.', verbose_name='active')),
                ('date_joined', models.DateTimeField(default=django.utils.timezone.now, verbose_name='date joined')),
                ('email', models.EmailField(help_text='SFSU email address', max_length=255, unique=True)),
                ('site_role', models.PositiveSmallIntegerField(choices=[(0, 'Unapproved'), (1, 'Approved'), (2, 'Moderator'), (3, 'Administrator')], default=0, help_text='Global permission tier')),
                ('sfsu_id_number', models.PositiveIntegerField(help_text='SFSU ID number used to log in', null=True, unique=True)),
                ('sfsu_id_picture_path', models.CharField(blank=True, help_text='Private storage name of the submitted ID picture', max_length=255)),
                ('profile_picture_path', models.CharField(default='profile_pictures/defaultPhoto.png', help_text='Storage name of the profile picture', max_length=255)),
                ('profile_picture_thumbnail_path', models.CharField(default='profile_pictures/tn-defaultPhoto.png', help_text='Storage name of the profile picture thumbnail', max_length=255)),
                ('created_at', models.DateTimeField(auto_now_add=True, help_text='Registration timestamp')),
                ('banned_by', models.ForeignKey(blank=True, help_text='Moderator or administrator who banned this user', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='banned_users', to=settings.AUTH_USER_MODEL)),
                ('groups', models.ManyToManyField(blank=True, help_text='The groups this user belongs to. A user will get all permissions granted to each of their groups.', related_name='user_set', related_query_name='user', to='auth.group', verbose_name='groups')),
                ('user_permissions', models.ManyToManyField(blank=True, help_text='Specific permissions for this user.', related_name='user_set', related_query_name='user', to='auth.permission', verbose_name='user permissions')),
            ],
            options={
                'ordering': ['-created_at'],
            },
            managers=[
                ('objects', community.models.UserManager()),
            ],
        ),
        migrations.CreateModel(
            name='Group',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(help_text='Group name, unique across the site', max_length=255, unique=True)),
                ('description', models.TextField(blank=True, help_text='What the group is about', max_length=5000)),
                ('announcement', models.TextField(blank=True, help_text='Announcement shown on the group home page', max_length=5000)),
                ('picture_path', models.CharField(help_text='Storage name of the group picture', max_length=255)),
                ('picture_thumbnail_path', models.CharField(help_text='Storage name of the thumbnail', max_length=255)),
                ('join_code', models.CharField(help_text='Token required to join through an invitation link', max_length=64)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='GroupMembership',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('role', models.PositiveSmallIntegerField(choices=[(1, 'Member'), (2, 'Moderator'), (3, 'Administrator')], default=1, help_text='1 Member, 2 Moderator, 3 Administrator')),
                ('joined_at', models.DateTimeField(auto_now_add=True)),
                ('group', models.ForeignKey(help_text='Group this membership belongs to', on_delete=django.db.models.deletion.CASCADE, related_name='memberships', to='community.group')),
                ('user', models.ForeignKey(help_text='Member', on_delete=django.db.models.deletion.CASCADE, related_name='group_memberships', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-role', 'joined_at'],
                'unique_together': {('group', 'user')},
            },
        ),
        migrations.CreateModel(
            name='Listing',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('title', models.CharField(max_length=255)),
                ('description', models.TextField(max_length=2500)),
                ('price', models.DecimalField(decimal_places=2, max_digits=8)),
                ('category', models.CharField(choices=[('Apparel', 'Apparel'), ('Books', 'Books'), ('Electronics', 'Electronics'), ('Entertainment', 'Entertainment'), ('Miscellaneous', 'Miscellaneous'), ('Perishables', 'Perishables'), ('Services', 'Services')], max_length=32)),
                ('image_path', models.CharField(max_length=255)),
                ('thumbnail_path', models.CharField(max_length=255)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('seller', models.ForeignKey(help_text='User selling the item', on_delete=django.db.models.deletion.CASCADE, related_name='listings', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-created_at', '-id'],
            },
        ),
        migrations.CreateModel(
            name='Thread',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('title', models.CharField(max_length=255)),
                ('category', models.CharField(choices=[('Discussion', 'Discussion'), ('General', 'General'), ('Help', 'Help'), ('Off-Topic', 'Off Topic'), ('Promotion', 'Promotion'), ('Social', 'Social')], max_length=32)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('creator', models.ForeignKey(help_text='User who started the thread', on_delete=django.db.models.deletion.CASCADE, related_name='threads', to=settings.AUTH_USER_MODEL)),
                ('group', models.ForeignKey(blank=True, help_text='Owning group, NULL for the site forums', null=True, on_delete=django.db.models.deletion.CASCADE, related_name='threads', to='community.group')),
            ],
            options={
                'ordering': ['-created_at', '-id'],
            },
        ),
        migrations.CreateModel(
            name='Post',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('body', models.TextField(max_length=10000)),
                ('is_original_post', models.BooleanField(default=False, help_text='True for the post created together with its thread')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('author', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='posts', to=settings.AUTH_USER_MODEL)),
                ('thread', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='posts', to='community.thread')),
            ],
            options={
                'ordering': ['created_at', 'id'],
            },
        ),
        migrations.CreateModel(
            name='Attachment',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('original_name', models.CharField(help_text='File name as uploaded by the user', max_length=255)),
                ('image_path', models.CharField(max_length=255)),
                ('thumbnail_path', models.CharField(max_length=255)),
                ('post', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='attachments', to='community.post')),
            ],
        ),
        migrations.CreateModel(
            name='Conversation',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('larger_user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='conversations_as_larger', to=settings.AUTH_USER_MODEL)),
                ('smaller_user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='conversations_as_smaller', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'constraints': [
                    models.UniqueConstraint(fields=('smaller_user', 'larger_user'), name='unique_conversation_pair'),
                    models.CheckConstraint(condition=models.Q(('smaller_user__lt', models.F('larger_user'))), name='conversation_pair_ordered'),
                ],
            },
        ),
        migrations.CreateModel(
            name='DirectMessage',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('body', models.TextField(max_length=5000)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('author', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='direct_messages', to=settings.AUTH_USER_MODEL)),
                ('conversation', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='messages', to='community.conversation')),
            ],
            options={
                'ordering': ['created_at', 'id'],
            },
        ),
        migrations.CreateModel(
            name='ChatMessage',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('body', models.TextField(max_length=5000)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('author', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='chat_messages', to=settings.AUTH_USER_MODEL)),
                ('group', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name='chat_messages', to='community.group')),
            ],
            options={
                'ordering': ['created_at', 'id'],
            },
        ),
    ]
